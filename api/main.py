"""
Hospital Supply Catalog API - Main application entry point.

Run with: py -m uvicorn api.main:app --reload --port 8001
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import psycopg2

from .config import ALLOWED_ORIGINS
from .middleware.logging import LoggingMiddleware
from .routers import (
    health,
    reconciliation,
)

_log = logging.getLogger("supply_api")

app = FastAPI(
    title="Hospital Supply Catalog API",
    version="1.0",
    description="Legacy supply list reconciliation against the canonical supply catalog",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)
app.add_middleware(LoggingMiddleware)


# ---------- Routers ----------
app.include_router(health.router)
app.include_router(reconciliation.router)


@app.exception_handler(psycopg2.Error)
async def handle_db_error(_request, exc):
    _log.error(f"Database error: {exc}")
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": "Database unavailable"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
