from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..database import get_db
from ..dependencies import get_run_guard
from scripts.reconciliation.pipeline import RunGuard

router = APIRouter()


@router.get("/api/health")
def health_check(guard: RunGuard = Depends(get_run_guard)):
    """API health check with DB pool connectivity and run-lock state."""
    db_ok = False
    try:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                db_ok = cur.fetchone() is not None
    except Exception:
        db_ok = False

    return {
        "status": "ok",
        "db": db_ok,
        "reconciliation_running": guard.busy,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
