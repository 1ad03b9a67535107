"""
Candidate generation and selection (catalog matching).

Workflow per legacy entry:
1. Containment pre-filter: normalized legacy name is a substring of the
   normalized catalog name, or the other way around
2. Jaro-Winkler score for every pre-filtered catalog item
3. Drop anything below the similarity floor
4. Keep the best score plus every near-tie within NEAR_TIE_BAND

A legacy name can legitimately map onto several catalog variants
("CIRCUITO CIRCULAR" -> ADULTO / NEONATAL / PEDIATRICO), so step 4 keeps
all near-ties instead of picking one.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .config import SIMILARITY_FLOOR, NEAR_TIE_BAND
from .models import LegacyEntry, CatalogItem, Candidate
from .normalizer import normalize_supply_name
from .similarity import similarity_at_least

logger = logging.getLogger(__name__)


class CatalogIndex:
    """
    Active catalog items with their names normalized once per run.
    """

    def __init__(self, items: Iterable[CatalogItem]):
        self.items: List[Tuple[CatalogItem, str]] = []
        skipped = 0
        for item in items:
            if not item.active:
                skipped += 1
                continue
            normalized = normalize_supply_name(item.name)
            if not normalized:
                skipped += 1
                continue
            self.items.append((item, normalized))
        if skipped:
            logger.debug(f"Catalog index skipped {skipped} inactive/empty items")

    def __len__(self):
        return len(self.items)


@dataclass
class EntryResult:
    """Kept candidates for one legacy entry (empty = unmatched)."""
    entry: LegacyEntry
    normalized: str
    candidates: List[Candidate] = field(default_factory=list)
    evaluated: int = 0

    @property
    def matched(self) -> bool:
        return bool(self.candidates)


def is_containment(a: str, b: str) -> bool:
    return a in b or b in a


def select_candidates(candidates: List[Candidate],
                      floor: float = SIMILARITY_FLOOR,
                      band: float = NEAR_TIE_BAND) -> List[Candidate]:
    """
    Apply the floor and the near-tie band.

    Returns survivors sorted by descending score; empty when nothing
    clears the floor.
    """
    survivors = [c for c in candidates if c.score >= floor]
    if not survivors:
        return []
    survivors.sort(key=lambda c: c.score, reverse=True)
    best = survivors[0].score
    return [c for c in survivors if c.score >= best - band]


class CatalogMatcher:
    """
    Matches legacy entries against a CatalogIndex.

    The floor is a module constant by default; it is never taken from
    request input. Pairs whose rapidfuzz bound is already below the
    floor are not scored exactly.
    """

    def __init__(self, index: CatalogIndex,
                 floor: float = SIMILARITY_FLOOR,
                 band: float = NEAR_TIE_BAND):
        self.index = index
        self.floor = floor
        self.band = band

    def contained(self, normalized: str) -> List[Tuple[CatalogItem, str]]:
        """Catalog items passing the containment pre-filter."""
        if not normalized:
            return []
        return [(item, item_norm) for item, item_norm in self.index.items
                if is_containment(normalized, item_norm)]

    def _score(self, entry: LegacyEntry, normalized: str,
               pool: List[Tuple[CatalogItem, str]], cutoff: float) -> List[Candidate]:
        candidates = []
        for item, item_norm in pool:
            score = similarity_at_least(normalized, item_norm, cutoff)
            if score is None:
                continue
            candidates.append(Candidate(entry=entry, item=item, score=score))
        return candidates

    def generate(self, entry: LegacyEntry, normalized: Optional[str] = None,
                 cutoff: float = 0.0) -> List[Candidate]:
        """
        Containment-related catalog items, scored.

        Items that provably score below `cutoff` are left out without
        computing their exact score.
        """
        if normalized is None:
            normalized = normalize_supply_name(entry.raw_name)
        return self._score(entry, normalized, self.contained(normalized), cutoff)

    def match(self, entry: LegacyEntry) -> EntryResult:
        normalized = normalize_supply_name(entry.raw_name)
        pool = self.contained(normalized)
        generated = self._score(entry, normalized, pool, self.floor)
        kept = select_candidates(generated, self.floor, self.band)
        return EntryResult(
            entry=entry,
            normalized=normalized,
            candidates=kept,
            evaluated=len(pool),
        )

    def match_batch(self, entries: List[LegacyEntry],
                    workers: int = 1) -> List[EntryResult]:
        """
        Match many entries. Output order follows input order.

        With workers > 1 the per-entry work runs on a thread pool; each
        entry is independent so the outcome is identical.
        """
        if workers <= 1 or len(entries) < 2:
            results = [self.match(e) for e in entries]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self.match, entries))

        matched = sum(1 for r in results if r.matched)
        logger.info(f"Matched {matched:,} / {len(entries):,} legacy entries "
                    f"against {len(self.index):,} catalog items")
        return results
