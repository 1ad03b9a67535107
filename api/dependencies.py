"""
Shared FastAPI dependencies.

Usage in routers:
    from ..dependencies import get_run_guard

    @router.post("/api/catalog/reconcile")
    def reconcile_catalog(guard: RunGuard = Depends(get_run_guard)):
        ...

Tests swap the guard through app.dependency_overrides.
"""
from scripts.reconciliation.pipeline import DEFAULT_GUARD, RunGuard


def get_run_guard() -> RunGuard:
    """Process-wide reconciliation run lock, shared with the CLI."""
    return DEFAULT_GUARD
