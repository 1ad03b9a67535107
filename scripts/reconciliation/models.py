"""
Data structures shared by the reconciliation stages.
"""

from dataclasses import dataclass
from typing import Optional, Any, Dict, Tuple


@dataclass(frozen=True)
class LegacyEntry:
    """
    One row of the imported legacy supply list.

    Attributes:
        id: Row identifier in the legacy table
        raw_name: Free-text supply name as typed in the spreadsheet
        procedure_tag: Anesthesia/procedure type the row is scoped to
        min_value: Lower bound carried over from the spreadsheet
        max_value: Upper bound carried over from the spreadsheet
    """
    id: Any
    raw_name: str
    procedure_tag: str
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    @property
    def default_quantity(self) -> int:
        """Legacy minimum when positive, otherwise 1."""
        if self.min_value is not None and self.min_value > 0:
            return self.min_value
        return 1


@dataclass(frozen=True)
class CatalogItem:
    """One canonical supply. Read-only for the engine."""
    id: str
    name: str
    active: bool = True


@dataclass
class Candidate:
    """Tentative pairing of a legacy entry with a catalog item."""
    entry: LegacyEntry
    item: CatalogItem
    score: float


@dataclass
class ClassifiedMatch:
    """A kept candidate with its confidence tier and suggested action."""
    entry: LegacyEntry
    item: CatalogItem
    score: float
    tier: str
    action: str

    @property
    def key(self) -> Tuple[str, str]:
        """Configuration-store composite key."""
        return (str(self.item.id), self.entry.procedure_tag)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "legacy_id": str(self.entry.id),
            "legacy_name": self.entry.raw_name,
            "catalog_id": str(self.item.id),
            "catalog_name": self.item.name,
            "procedure_tag": self.entry.procedure_tag,
            "score": round(self.score, 4),
            "tier": self.tier,
            "action": self.action,
        }


@dataclass
class ConfigurationRow:
    """
    Persisted bounds for a catalog item under one procedure tag.

    `id` is None for rows that have not been written yet.
    """
    catalog_item_id: str
    procedure_tag: str
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    default_quantity: Optional[int] = None
    id: Optional[Any] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (str(self.catalog_item_id), self.procedure_tag)

    def bounds(self) -> Tuple[Optional[int], Optional[int], Optional[int]]:
        return (self.min_quantity, self.max_quantity, self.default_quantity)

    @classmethod
    def from_match(cls, match: ClassifiedMatch) -> "ConfigurationRow":
        entry = match.entry
        return cls(
            catalog_item_id=str(match.item.id),
            procedure_tag=entry.procedure_tag,
            min_quantity=entry.min_value,
            max_quantity=entry.max_value,
            default_quantity=entry.default_quantity,
        )


@dataclass
class UnmatchedEntry:
    """Legacy entry with no candidate above the similarity floor."""
    entry: LegacyEntry
    normalized: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entry.id,
            "nombre": self.entry.raw_name,
            "tipo": self.entry.procedure_tag,
        }
