"""
Run summary assembly.

Pure aggregation over matcher, classifier and merge writer output. The
serialized form keeps the keys the dashboard already reads
(estadisticas / muestra_matches / sin_mapeo_muestra).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .classifier import count_by_tier
from .config import SAMPLE_SIZE
from .models import ClassifiedMatch, UnmatchedEntry
from .reconciler import MergeOutcome


@dataclass
class RunSummary:
    run_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    include_medium: bool = False
    total_entries: int = 0
    total_catalog_items: int = 0
    total_matches: int = 0
    matched_entries: int = 0
    multi_match_entries: int = 0
    by_tier: Dict[str, int] = field(default_factory=dict)
    unmatched_count: int = 0
    outcome: MergeOutcome = field(default_factory=MergeOutcome)
    sample_matches: List[ClassifiedMatch] = field(default_factory=list)
    sample_unmatched: List[UnmatchedEntry] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if not self.completed_at:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Response body returned to the dashboard."""
        return {
            "success": True,
            "run_id": self.run_id,
            "estadisticas": {
                "total_matches": self.total_matches,
                "filas_insertadas": self.outcome.inserted,
                "filas_actualizadas": self.outcome.updated,
                "registros_sin_mapeo": self.unmatched_count,
                "filas_sin_cambios": self.outcome.unchanged,
                "lotes_fallidos": self.outcome.failed_batches,
                "total_registros": self.total_entries,
                "total_catalogo": self.total_catalog_items,
                "registros_con_varios_matches": self.multi_match_entries,
                "por_nivel": dict(self.by_tier),
                "incluye_medios": self.include_medium,
                "simulacion": self.outcome.dry_run,
                "inserciones_planeadas": self.outcome.planned_inserts,
                "actualizaciones_planeadas": self.outcome.planned_updates,
                "duracion_segundos": round(self.duration_seconds, 3),
            },
            "muestra_matches": [_match_sample(m) for m in self.sample_matches],
            "sin_mapeo_muestra": [u.to_dict() for u in self.sample_unmatched],
        }


def _match_sample(m: ClassifiedMatch) -> Dict[str, Any]:
    return {
        "excel": m.entry.raw_name,
        "catalogo": m.item.name,
        "tipo_anestesia": m.entry.procedure_tag,
        "similitud": round(m.score * 100),
        "nivel": m.tier,
        "accion": m.action,
        "min": m.entry.min_value,
        "max": m.entry.max_value,
    }


def build_summary(run_id: str,
                  started_at: datetime,
                  total_entries: int,
                  total_catalog_items: int,
                  matches: List[ClassifiedMatch],
                  unmatched: List[UnmatchedEntry],
                  outcome: MergeOutcome,
                  include_medium: bool = False,
                  sample_size: int = SAMPLE_SIZE) -> RunSummary:
    per_entry: Dict[Any, int] = {}
    for m in matches:
        per_entry[m.entry.id] = per_entry.get(m.entry.id, 0) + 1

    return RunSummary(
        run_id=run_id,
        started_at=started_at,
        completed_at=datetime.now(),
        include_medium=include_medium,
        total_entries=total_entries,
        total_catalog_items=total_catalog_items,
        total_matches=len(matches),
        matched_entries=len(per_entry),
        multi_match_entries=sum(1 for n in per_entry.values() if n > 1),
        by_tier=count_by_tier(matches),
        unmatched_count=len(unmatched),
        outcome=outcome,
        sample_matches=list(matches[:sample_size]),
        sample_unmatched=list(unmatched[:sample_size]),
    )


def print_summary(summary: RunSummary):
    """Print run summary to console."""
    out = summary.outcome
    print(f"\n{'='*60}")
    print(f"RECONCILIATION RUN {summary.run_id}")
    print(f"{'='*60}")
    print(f"  Legacy entries:   {summary.total_entries:,}")
    print(f"  Catalog items:    {summary.total_catalog_items:,}")
    print(f"  Matches:          {summary.total_matches:,} "
          f"({summary.multi_match_entries:,} entries with several variants)")
    print(f"  Unmatched:        {summary.unmatched_count:,}")
    print("  By tier:")
    for tier, count in summary.by_tier.items():
        print(f"    {tier:8s} {count:>8,}")
    print()
    if out.dry_run:
        print(f"  DRY RUN -- would insert {out.planned_inserts:,}, "
              f"update {out.planned_updates:,}")
    else:
        print(f"  Inserted:         {out.inserted:,}")
        print(f"  Updated:          {out.updated:,}")
    print(f"  Unchanged:        {out.unchanged:,}")
    if out.failed_batches:
        print(f"  Failed batches:   {out.failed_batches} ({out.failed_rows:,} rows)")
    print(f"{'='*60}\n")
