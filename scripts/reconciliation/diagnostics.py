"""
Similarity diagnostic report (read-only).

For every legacy entry, finds the single best-scoring catalog item over
the whole catalog, with no containment pre-filter and no floor, and
classifies it with the same tiers as the reconciliation run. Weak matches
are surfaced on purpose so people can triage them; nothing is written.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .classifier import tier_for_score, count_by_tier, count_by_action
from .errors import InputUnavailableError, StoreError
from .matcher import CatalogIndex
from .models import CatalogItem, ClassifiedMatch, LegacyEntry
from .normalizer import normalize_supply_name
from .similarity import similarity, similarity_upper_bound

logger = logging.getLogger(__name__)


@dataclass
class SimilarityReport:
    total_entries: int = 0
    total_catalog_items: int = 0
    results: List[ClassifiedMatch] = field(default_factory=list)
    no_candidate: List[LegacyEntry] = field(default_factory=list)

    def to_dict(self, limit: Optional[int] = None) -> Dict[str, Any]:
        tiers = count_by_tier(self.results)
        actions = count_by_action(self.results)
        rows = self.results if limit is None else self.results[:limit]
        return {
            "success": True,
            "estadisticas": {
                "total_registros": self.total_entries,
                "total_catalogo": self.total_catalog_items,
                "por_nivel": tiers,
                "por_accion": actions,
                "sin_candidato": len(self.no_candidate),
            },
            "resultados": [
                {
                    "legacy_id": str(m.entry.id),
                    "legacy_nombre": m.entry.raw_name,
                    "catalogo_id": str(m.item.id),
                    "catalogo_nombre": m.item.name,
                    "similitud_porcentaje": round(m.score * 100),
                    "nivel": m.tier,
                    "accion_sugerida": m.action,
                }
                for m in rows
            ],
        }


def best_match(normalized: str, index: CatalogIndex):
    """(item, score) of the highest-scoring catalog item, or (None, 0.0)."""
    best_item, best_score = None, 0.0
    for item, item_norm in index.items:
        if similarity_upper_bound(normalized, item_norm) <= best_score:
            continue
        score = similarity(normalized, item_norm)
        if score > best_score:
            best_item, best_score = item, score
    return best_item, best_score


def build_similarity_report(entries: List[LegacyEntry],
                            catalog: List[CatalogItem]) -> SimilarityReport:
    index = CatalogIndex(catalog)
    report = SimilarityReport(total_entries=len(entries),
                              total_catalog_items=len(index))

    for entry in entries:
        normalized = normalize_supply_name(entry.raw_name)
        item, score = best_match(normalized, index) if normalized else (None, 0.0)
        if item is None:
            report.no_candidate.append(entry)
            continue
        tier, action = tier_for_score(score)
        report.results.append(ClassifiedMatch(
            entry=entry, item=item, score=score, tier=tier, action=action,
        ))

    report.results.sort(key=lambda m: m.score, reverse=True)
    logger.info(f"Similarity report: {len(report.results):,} scored, "
                f"{len(report.no_candidate):,} without any candidate")
    return report


def run_similarity_report(store) -> SimilarityReport:
    """Load inputs from the store and build the report. Read failures are fatal."""
    try:
        entries = store.load_legacy_entries()
    except StoreError as e:
        raise InputUnavailableError("legacy supply list", e) from e
    try:
        catalog = store.load_catalog()
    except StoreError as e:
        raise InputUnavailableError("supply catalog", e) from e
    return build_similarity_report(entries, catalog)
