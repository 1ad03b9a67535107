"""
Merge writer: turns classified matches into configuration rows.

1. Composite key (catalog_item_id, procedure_tag) for every mergeable match
2. One bulk read of existing rows into an in-memory index
3. Per key: absent -> insert, bounds differ -> update, identical -> skip
4. Inserts and updates flushed in fixed-size batches
5. Counts reported back for the run summary

The three-way branch in step 3 is what makes a rerun over unchanged
inputs write nothing. Rows are never deleted here.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .config import ACTION_MERGE, ACTION_REVIEW, load_write_batch_size
from .errors import StoreError
from .models import ClassifiedMatch, ConfigurationRow

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


def index_rows(rows: Iterable[ConfigurationRow]) -> Dict[Key, ConfigurationRow]:
    """Index existing rows by composite key. First row wins on duplicates."""
    index = {}
    duplicates = 0
    for row in rows:
        if row.key in index:
            duplicates += 1
            continue
        index[row.key] = row
    if duplicates:
        logger.warning(f"Configuration store has {duplicates} duplicate "
                       f"(catalog item, procedure tag) rows; first one used")
    return index


@dataclass
class MergePlan:
    inserts: List[ConfigurationRow] = field(default_factory=list)
    updates: List[ConfigurationRow] = field(default_factory=list)
    unchanged: int = 0
    not_eligible: int = 0
    collapsed: int = 0


@dataclass
class MergeOutcome:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed_batches: int = 0
    failed_rows: int = 0
    planned_inserts: int = 0
    planned_updates: int = 0
    dry_run: bool = False
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "failed_batches": self.failed_batches,
            "failed_rows": self.failed_rows,
            "planned_inserts": self.planned_inserts,
            "planned_updates": self.planned_updates,
            "dry_run": self.dry_run,
        }


class MergeWriter:
    """
    Idempotent merge of classified matches into the configuration store.

    Args:
        store: object with load_configuration_rows(), insert_rows(rows),
            update_rows(rows)
        include_medium: also merge `review` (medium tier) matches
        batch_size: rows per write batch (env/default when None)
        dry_run: plan only, issue no writes
    """

    def __init__(self, store, include_medium: bool = False,
                 batch_size: Optional[int] = None, dry_run: bool = False):
        self.store = store
        self.include_medium = include_medium
        self.batch_size = batch_size or load_write_batch_size()
        self.dry_run = dry_run

    def is_eligible(self, match: ClassifiedMatch) -> bool:
        if match.action == ACTION_MERGE:
            return True
        return self.include_medium and match.action == ACTION_REVIEW

    def load_index(self) -> Dict[Key, ConfigurationRow]:
        """Bulk read of existing rows. StoreError propagates (fatal)."""
        rows = self.store.load_configuration_rows()
        index = index_rows(rows)
        logger.info(f"Loaded {len(index):,} existing configuration rows")
        return index

    def plan(self, matches: Iterable[ClassifiedMatch],
             existing: Dict[Key, ConfigurationRow]) -> MergePlan:
        plan = MergePlan()

        # Last writer wins when several matches share a key in one run
        desired: Dict[Key, ConfigurationRow] = {}
        for match in matches:
            if not self.is_eligible(match):
                plan.not_eligible += 1
                continue
            if match.key in desired:
                plan.collapsed += 1
            desired[match.key] = ConfigurationRow.from_match(match)

        for key, row in desired.items():
            current = existing.get(key)
            if current is None:
                plan.inserts.append(row)
            elif current.bounds() != row.bounds():
                row.id = current.id
                plan.updates.append(row)
            else:
                plan.unchanged += 1

        if plan.collapsed:
            logger.info(f"{plan.collapsed} matches shared a key with a later match in this run")
        return plan

    def _batches(self, rows: List[ConfigurationRow]):
        for i in range(0, len(rows), self.batch_size):
            yield i // self.batch_size + 1, rows[i:i + self.batch_size]

    def _flush(self, rows: List[ConfigurationRow], write, label: str,
               outcome: MergeOutcome) -> int:
        written = 0
        for batch_no, batch in self._batches(rows):
            try:
                write(batch)
            except StoreError as e:
                outcome.failed_batches += 1
                outcome.failed_rows += len(batch)
                msg = f"{label} batch {batch_no} ({len(batch)} rows) failed: {e}"
                outcome.errors.append(msg)
                logger.error(msg)
                continue
            written += len(batch)
        return written

    def execute(self, plan: MergePlan) -> MergeOutcome:
        outcome = MergeOutcome(
            unchanged=plan.unchanged,
            planned_inserts=len(plan.inserts),
            planned_updates=len(plan.updates),
            dry_run=self.dry_run,
        )

        if self.dry_run:
            logger.info(f"Dry run: would insert {len(plan.inserts):,}, "
                        f"update {len(plan.updates):,}, skip {plan.unchanged:,}")
            return outcome

        outcome.inserted = self._flush(plan.inserts, self.store.insert_rows, "insert", outcome)
        outcome.updated = self._flush(plan.updates, self.store.update_rows, "update", outcome)

        logger.info(f"Merge complete: {outcome.inserted:,} inserted, "
                    f"{outcome.updated:,} updated, {outcome.unchanged:,} unchanged, "
                    f"{outcome.failed_batches} failed batches")
        return outcome

    def reconcile(self, matches: List[ClassifiedMatch],
                  existing: Optional[Dict[Key, ConfigurationRow]] = None) -> MergeOutcome:
        """Plan against the existing-row index and flush."""
        if existing is None:
            existing = self.load_index()
        return self.execute(self.plan(matches, existing))
