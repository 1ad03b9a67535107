"""
Catalog Reconciliation Pipeline

Orchestrates one run:
1. Load legacy entries, active catalog and existing configuration rows
   (any read failure aborts the run before a single write)
2. Candidate generation + selection per legacy entry
3. Confidence classification
4. Idempotent merge into the configuration store
5. Run summary

Runs are serialized by a RunGuard: at most one in flight per guard. All
per-run state lives on a ReconciliationRun.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .classifier import classify_all
from .errors import InputUnavailableError, RunInProgressError, StoreError
from .matcher import CatalogIndex, CatalogMatcher, EntryResult
from .models import ClassifiedMatch, ConfigurationRow, LegacyEntry, UnmatchedEntry
from .reconciler import MergeWriter, Key
from .report import RunSummary, build_summary

logger = logging.getLogger(__name__)


class RunGuard:
    """Non-blocking mutual exclusion for reconciliation runs."""

    def __init__(self):
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self):
        if not self._lock.acquire(blocking=False):
            raise RunInProgressError()
        try:
            yield
        finally:
            self._lock.release()


# Shared by the API and CLI entry points in one process
DEFAULT_GUARD = RunGuard()


@dataclass
class ReconciliationRun:
    """Everything one run loads and produces."""
    run_id: str
    started_at: datetime
    include_medium: bool = False
    dry_run: bool = False
    entries: List[LegacyEntry] = field(default_factory=list)
    catalog: Optional[CatalogIndex] = None
    existing: Dict[Key, ConfigurationRow] = field(default_factory=dict)
    results: List[EntryResult] = field(default_factory=list)
    matches: List[ClassifiedMatch] = field(default_factory=list)
    unmatched: List[UnmatchedEntry] = field(default_factory=list)


class ReconciliationEngine:
    """
    Maps the legacy supply list onto the catalog and merges the result.

    Args:
        store: PostgresStore or any object with the same load/insert/update methods
        include_medium: also merge medium-tier (review) matches
        dry_run: compute the merge plan without writing
        workers: thread pool size for candidate generation
        guard: RunGuard to serialize runs (DEFAULT_GUARD when None)
        batch_size: rows per write batch (env/default when None)
    """

    def __init__(self, store, include_medium: bool = False, dry_run: bool = False,
                 workers: int = 1, guard: RunGuard = None,
                 batch_size: Optional[int] = None):
        self.store = store
        self.include_medium = include_medium
        self.dry_run = dry_run
        self.workers = workers
        self.guard = guard or DEFAULT_GUARD
        self.writer = MergeWriter(store, include_medium=include_medium,
                                  batch_size=batch_size, dry_run=dry_run)

    def _load(self, run: ReconciliationRun):
        try:
            run.entries = self.store.load_legacy_entries()
        except StoreError as e:
            raise InputUnavailableError("legacy supply list", e) from e

        try:
            run.catalog = CatalogIndex(self.store.load_catalog())
        except StoreError as e:
            raise InputUnavailableError("supply catalog", e) from e

        try:
            run.existing = self.writer.load_index()
        except StoreError as e:
            raise InputUnavailableError("configuration rows", e) from e

        logger.info(f"Analyzing {len(run.entries):,} legacy entries against "
                    f"{len(run.catalog):,} catalog items")

    def _match(self, run: ReconciliationRun):
        matcher = CatalogMatcher(run.catalog)
        run.results = matcher.match_batch(run.entries, workers=self.workers)
        for result in run.results:
            if result.matched:
                run.matches.extend(classify_all(result.candidates))
            else:
                run.unmatched.append(UnmatchedEntry(entry=result.entry,
                                                    normalized=result.normalized))
        logger.info(f"Generated {len(run.matches):,} matches, "
                    f"{len(run.unmatched):,} legacy entries without mapping")

    def run(self) -> RunSummary:
        with self.guard.hold():
            run = ReconciliationRun(
                run_id=str(uuid.uuid4())[:8],
                started_at=datetime.now(),
                include_medium=self.include_medium,
                dry_run=self.dry_run,
            )
            logger.info(f"Starting reconciliation run {run.run_id} "
                        f"(include_medium={run.include_medium}, dry_run={run.dry_run})")

            self._load(run)
            self._match(run)
            outcome = self.writer.reconcile(run.matches, run.existing)

            summary = build_summary(
                run_id=run.run_id,
                started_at=run.started_at,
                total_entries=len(run.entries),
                total_catalog_items=len(run.catalog),
                matches=run.matches,
                unmatched=run.unmatched,
                outcome=outcome,
                include_medium=run.include_medium,
            )
            logger.info(f"Run {run.run_id} completed in {summary.duration_seconds:.2f}s")
            return summary


def run_reconciliation(store, include_medium: bool = False,
                       dry_run: bool = False, **kwargs) -> Dict[str, Any]:
    """
    Convenience function: run once and return the response body.

    InputUnavailableError and RunInProgressError propagate to the caller.
    """
    engine = ReconciliationEngine(store, include_medium=include_medium,
                                  dry_run=dry_run, **kwargs)
    return engine.run().to_dict()
