"""
Catalog Reconciliation Module

Maps a legacy, spreadsheet-imported supply list onto the canonical supply
catalog by approximate name matching, classifies each mapping by
confidence, and merges accepted mappings into the configuration store
without duplicating or clobbering existing rows.

Usage:
    from scripts.reconciliation import ReconciliationEngine, PostgresStore

    engine = ReconciliationEngine(PostgresStore(conn), include_medium=False)
    summary = engine.run()
    print(summary.to_dict()["estadisticas"])
"""

from .pipeline import ReconciliationEngine, run_reconciliation
from .store import PostgresStore
from .report import RunSummary
from .errors import ReconciliationError, InputUnavailableError, RunInProgressError

__all__ = [
    'ReconciliationEngine',
    'run_reconciliation',
    'PostgresStore',
    'RunSummary',
    'ReconciliationError',
    'InputUnavailableError',
    'RunInProgressError',
]
