"""
Exceptions raised by the reconciliation engine.

Only conditions that abort a run are exceptions. Unmatched entries,
ambiguous candidates and failed write batches are reported in the run
summary instead.
"""


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class InputUnavailableError(ReconciliationError):
    """The legacy list, the catalog or the existing configuration rows could not be read."""

    def __init__(self, source: str, cause: Exception = None):
        self.source = source
        self.cause = cause
        msg = f"Error reading {source}"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class RunInProgressError(ReconciliationError):
    """Another reconciliation run holds the run lock."""

    def __init__(self):
        super().__init__("A reconciliation run is already in progress")


class StoreError(ReconciliationError):
    """A read or write against the backing store failed."""
