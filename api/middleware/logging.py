"""
Request logging for the supply catalog API.

One line per request. Reconciliation endpoints get their own slow
threshold (a full run reads and writes the whole configuration table)
and the run id the router puts in the X-Run-Id header, so a log line can
be tied to the engine's own "run <id>" lines. A 409 means another run
held the lock and is logged as such.
"""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("supply_api")

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

RUN_ID_HEADER = "X-Run-Id"
RECONCILE_PREFIX = "/api/catalog/"

SLOW_REQUEST_MS = 2000
SLOW_RECONCILE_MS = 60000


def slow_threshold_ms(path: str) -> int:
    if path.startswith(RECONCILE_PREFIX):
        return SLOW_RECONCILE_MS
    return SLOW_REQUEST_MS


def format_request_line(request: Request, status_code: int, duration_ms: float,
                        run_id: str = None) -> str:
    msg = (
        f"{request.method} {request.url.path} "
        f"status={status_code} "
        f"duration={duration_ms}ms"
    )
    if run_id:
        msg += f" run={run_id}"
    if status_code == 409:
        msg += " run_lock=busy"
    return msg


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration_ms = round((time.time() - start) * 1000, 1)

        msg = format_request_line(request, response.status_code, duration_ms,
                                  response.headers.get(RUN_ID_HEADER))

        if response.status_code >= 500:
            logger.error(msg)
        elif (response.status_code >= 400
              or duration_ms > slow_threshold_ms(request.url.path)):
            logger.warning(msg)
        else:
            logger.info(msg)

        return response
