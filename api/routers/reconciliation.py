"""
Catalog reconciliation endpoints: run the legacy -> catalog merge and the
read-only similarity report.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from ..database import get_db
from ..dependencies import get_run_guard
from ..middleware.logging import RUN_ID_HEADER
from ..models.schemas import ReconcileRequest
from scripts.reconciliation.diagnostics import run_similarity_report
from scripts.reconciliation.errors import InputUnavailableError, RunInProgressError
from scripts.reconciliation.pipeline import ReconciliationEngine, RunGuard
from scripts.reconciliation.store import PostgresStore

_log = logging.getLogger("supply_api")

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code,
                        content={"success": False, "error": message})


@router.post("/api/catalog/reconcile")
def reconcile_catalog(response: Response,
                      body: Optional[ReconcileRequest] = None,
                      guard: RunGuard = Depends(get_run_guard)):
    """Map the legacy supply list onto the catalog and merge configuration rows."""
    body = body or ReconcileRequest()
    try:
        with get_db() as conn:
            engine = ReconciliationEngine(
                PostgresStore(conn),
                include_medium=body.include_medium,
                dry_run=body.dry_run,
                guard=guard,
            )
            summary = engine.run()
    except RunInProgressError as e:
        _log.warning(f"Rejected reconciliation request: {e}")
        return _error(409, str(e))
    except InputUnavailableError as e:
        _log.error(f"Reconciliation aborted: {e}")
        return _error(500, str(e))

    response.headers[RUN_ID_HEADER] = summary.run_id
    return summary.to_dict()


@router.get("/api/catalog/similarity-report")
def similarity_report(limit: Optional[int] = Query(None, ge=1, le=5000)):
    """Best catalog candidate per legacy entry, classified, for manual triage."""
    try:
        with get_db() as conn:
            report = run_similarity_report(PostgresStore(conn))
    except InputUnavailableError as e:
        _log.error(f"Similarity report aborted: {e}")
        return _error(500, str(e))

    return report.to_dict(limit=limit)
