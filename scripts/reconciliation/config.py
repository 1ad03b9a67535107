"""
Reconciliation Configuration

Threshold constants, write batching, and the table/column mapping for the
legacy list, the canonical catalog and the configuration store.
"""

import os
from dataclasses import dataclass


# Candidate selection
SIMILARITY_FLOOR = 0.88      # nothing below this is ever proposed
NEAR_TIE_BAND = 0.05         # keep every survivor within this of the best

# Confidence tiers
TIER_HIGH = "high"
TIER_MEDIUM = "medium"
TIER_LOW = "low"

ACTION_MERGE = "merge"
ACTION_REVIEW = "review"
ACTION_REJECT = "reject"

HIGH_THRESHOLD = 0.90
MEDIUM_THRESHOLD = 0.70

TIER_ACTIONS = {
    TIER_HIGH: ACTION_MERGE,
    TIER_MEDIUM: ACTION_REVIEW,
    TIER_LOW: ACTION_REJECT,
}

TIER_ORDER = [TIER_HIGH, TIER_MEDIUM, TIER_LOW]

# Merge writer
DEFAULT_WRITE_BATCH_SIZE = 50
MAX_WRITE_BATCH_SIZE = 1000

# Run reporter
SAMPLE_SIZE = 10


def load_write_batch_size() -> int:
    """Load write batch size from env with safe bounds."""
    raw = os.getenv("RECON_WRITE_BATCH_SIZE")
    if not raw:
        return DEFAULT_WRITE_BATCH_SIZE
    try:
        val = int(raw)
    except ValueError:
        return DEFAULT_WRITE_BATCH_SIZE
    if val < 1 or val > MAX_WRITE_BATCH_SIZE:
        return DEFAULT_WRITE_BATCH_SIZE
    return val


@dataclass
class StoreConfig:
    """Table and column names used by the store adapter."""
    # Legacy spreadsheet import
    legacy_table: str = "excel_insumo_config"
    legacy_id_col: str = "id"
    legacy_name_col: str = "nombre_insumo"
    legacy_tag_col: str = "tipo_anestesia"
    legacy_min_col: str = "min_excel"
    legacy_max_col: str = "max_excel"

    # Canonical catalog
    catalog_table: str = "insumos_catalogo"
    catalog_id_col: str = "id"
    catalog_name_col: str = "nombre"
    catalog_active_col: str = "activo"

    # Configuration store
    config_table: str = "insumo_configuracion"
    config_id_col: str = "id"
    config_item_col: str = "insumo_catalogo_id"
    config_tag_col: str = "tipo_anestesia"
    config_min_col: str = "min_anestesia"
    config_max_col: str = "max_anestesia"
    config_default_col: str = "cantidad_default"


DEFAULT_STORE_CONFIG = StoreConfig()
