"""
PostgreSQL store adapter.

Reads the legacy list, the active catalog and the existing configuration
rows, and writes configuration rows in batches. Works with plain tuple
cursors and with RealDictCursor connections from the API pool.

psycopg2 errors are re-raised as StoreError so the engine does not depend
on the driver.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import execute_batch

from .config import StoreConfig, DEFAULT_STORE_CONFIG
from .errors import StoreError
from .models import LegacyEntry, CatalogItem, ConfigurationRow

logger = logging.getLogger(__name__)


def _coerce_bound(value: Any) -> Optional[Any]:
    """NUMERIC columns come back as Decimal; keep integral values as int."""
    if value is None:
        return None
    if isinstance(value, (Decimal, float)):
        if value == int(value):
            return int(value)
        return float(value)
    return value


def _fetch_dicts(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    if not rows:
        return []
    if isinstance(rows[0], dict):
        return [dict(r) for r in rows]
    cols = [desc[0] for desc in cur.description]
    return [dict(zip(cols, row)) for row in rows]


class PostgresStore:
    """Legacy list, catalog and configuration store on one connection."""

    def __init__(self, conn, config: StoreConfig = None):
        self.conn = conn
        self.config = config or DEFAULT_STORE_CONFIG

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _select(self, query: str, what: str) -> List[Dict[str, Any]]:
        try:
            with self.conn.cursor() as cur:
                cur.execute(query)
                return _fetch_dicts(cur)
        except psycopg2.Error as e:
            self.rollback()
            raise StoreError(f"reading {what}: {e}") from e

    def load_legacy_entries(self) -> List[LegacyEntry]:
        cfg = self.config
        rows = self._select(f"""
            SELECT {cfg.legacy_id_col} AS id,
                   {cfg.legacy_name_col} AS name,
                   {cfg.legacy_tag_col} AS tag,
                   {cfg.legacy_min_col} AS min_value,
                   {cfg.legacy_max_col} AS max_value
            FROM {cfg.legacy_table}
            ORDER BY {cfg.legacy_id_col}
        """, cfg.legacy_table)
        return [
            LegacyEntry(
                id=r["id"],
                raw_name=r["name"] or "",
                procedure_tag=r["tag"],
                min_value=_coerce_bound(r["min_value"]),
                max_value=_coerce_bound(r["max_value"]),
            )
            for r in rows
        ]

    def load_catalog(self) -> List[CatalogItem]:
        """Active catalog items only."""
        cfg = self.config
        rows = self._select(f"""
            SELECT {cfg.catalog_id_col} AS id, {cfg.catalog_name_col} AS name
            FROM {cfg.catalog_table}
            WHERE {cfg.catalog_active_col} = TRUE
            ORDER BY {cfg.catalog_name_col}
        """, cfg.catalog_table)
        return [CatalogItem(id=str(r["id"]), name=r["name"] or "", active=True) for r in rows]

    def load_configuration_rows(self) -> List[ConfigurationRow]:
        cfg = self.config
        rows = self._select(f"""
            SELECT {cfg.config_id_col} AS id,
                   {cfg.config_item_col} AS item_id,
                   {cfg.config_tag_col} AS tag,
                   {cfg.config_min_col} AS min_quantity,
                   {cfg.config_max_col} AS max_quantity,
                   {cfg.config_default_col} AS default_quantity
            FROM {cfg.config_table}
        """, cfg.config_table)
        return [
            ConfigurationRow(
                id=r["id"],
                catalog_item_id=str(r["item_id"]),
                procedure_tag=r["tag"],
                min_quantity=_coerce_bound(r["min_quantity"]),
                max_quantity=_coerce_bound(r["max_quantity"]),
                default_quantity=_coerce_bound(r["default_quantity"]),
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Writes (one transaction per batch)
    # ------------------------------------------------------------------

    def insert_rows(self, rows: List[ConfigurationRow]) -> None:
        cfg = self.config
        sql = f"""
            INSERT INTO {cfg.config_table}
                ({cfg.config_item_col}, {cfg.config_tag_col},
                 {cfg.config_min_col}, {cfg.config_max_col}, {cfg.config_default_col})
            VALUES (%s, %s, %s, %s, %s)
        """
        values = [
            (r.catalog_item_id, r.procedure_tag,
             r.min_quantity, r.max_quantity, r.default_quantity)
            for r in rows
        ]
        try:
            with self.conn.cursor() as cur:
                execute_batch(cur, sql, values, page_size=len(values) or 1)
            self.conn.commit()
        except psycopg2.Error as e:
            self.rollback()
            raise StoreError(f"inserting {len(rows)} rows: {e}") from e

    def update_rows(self, rows: List[ConfigurationRow]) -> None:
        """Per-row UPDATE by id; every bound is overwritten."""
        cfg = self.config
        sql = f"""
            UPDATE {cfg.config_table}
            SET {cfg.config_min_col} = %s,
                {cfg.config_max_col} = %s,
                {cfg.config_default_col} = %s,
                updated_at = NOW()
            WHERE {cfg.config_id_col} = %s
        """
        try:
            with self.conn.cursor() as cur:
                for r in rows:
                    cur.execute(sql, (r.min_quantity, r.max_quantity,
                                      r.default_quantity, r.id))
            self.conn.commit()
        except psycopg2.Error as e:
            self.rollback()
            raise StoreError(f"updating {len(rows)} rows: {e}") from e

    def rollback(self):
        try:
            self.conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"Rollback failed: {e}")
