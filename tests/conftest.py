"""
Shared test fixtures for the supply catalog reconciliation test suite.
"""
import sys
import os
from dataclasses import replace

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from starlette.testclient import TestClient
from api.main import app
from scripts.reconciliation.errors import StoreError
from scripts.reconciliation.models import LegacyEntry, CatalogItem, ConfigurationRow


class FakeStore:
    """
    In-memory stand-in for PostgresStore.

    fail_reads: subset of {"legacy", "catalog", "config"} that raise StoreError
    fail_insert_calls / fail_update_calls: 1-based call numbers that raise
    """

    def __init__(self, legacy=None, catalog=None, rows=None):
        self.legacy = list(legacy or [])
        self.catalog = list(catalog or [])
        self.rows = {}
        self.next_id = 1
        self.insert_calls = []
        self.update_calls = []
        self.fail_reads = set()
        self.fail_insert_calls = set()
        self.fail_update_calls = set()
        for row in rows or []:
            self._store(row)

    def _store(self, row):
        if row.id is None:
            row = replace(row, id=self.next_id)
        self.next_id = max(self.next_id, int(row.id)) + 1
        self.rows[row.id] = row

    def load_legacy_entries(self):
        if "legacy" in self.fail_reads:
            raise StoreError("legacy table unreachable")
        return list(self.legacy)

    def load_catalog(self):
        if "catalog" in self.fail_reads:
            raise StoreError("catalog table unreachable")
        return [c for c in self.catalog if c.active]

    def load_configuration_rows(self):
        if "config" in self.fail_reads:
            raise StoreError("configuration table unreachable")
        return [replace(r) for r in self.rows.values()]

    def insert_rows(self, rows):
        self.insert_calls.append([replace(r) for r in rows])
        if len(self.insert_calls) in self.fail_insert_calls:
            raise StoreError("insert rejected")
        for r in rows:
            self._store(replace(r, id=None))

    def update_rows(self, rows):
        self.update_calls.append([replace(r) for r in rows])
        if len(self.update_calls) in self.fail_update_calls:
            raise StoreError("update rejected")
        for r in rows:
            self.rows[r.id] = replace(r)

    def row_for(self, item_id, tag):
        for r in self.rows.values():
            if r.key == (str(item_id), tag):
                return r
        return None


CIRCUIT_CATALOG = [
    CatalogItem(id="cat-adulto", name="Circuito circular (adulto)"),
    CatalogItem(id="cat-neonatal", name="Circuito circular (neonatal)"),
    CatalogItem(id="cat-pediatrico", name="Circuito circular (pediátrico)"),
]

SAMPLE_CATALOG = CIRCUIT_CATALOG + [
    CatalogItem(id="cat-cal", name="CAL SODADA"),
    CatalogItem(id="cat-cal-kg", name="Cal sodada 4.5 kg"),
    CatalogItem(id="cat-guantes", name="GUANTES ESTÉRILES"),
    CatalogItem(id="cat-gasas", name="GASAS ESTERILES 10X10 PAQUETE CON 200 PIEZAS"),
    CatalogItem(id="cat-inactivo", name="CAL SODADA", active=False),
]

SAMPLE_LEGACY = [
    LegacyEntry(id=1, raw_name="CIRCUITO CIRCULAR", procedure_tag="GENERAL", min_value=1, max_value=3),
    LegacyEntry(id=2, raw_name="Cal Sodada", procedure_tag="GENERAL", min_value=2, max_value=4),
    LegacyEntry(id=3, raw_name="Guantes", procedure_tag="LOCAL", min_value=None, max_value=2),
    LegacyEntry(id=4, raw_name="Gasas", procedure_tag="LOCAL", min_value=1, max_value=1),
    LegacyEntry(id=5, raw_name="Monitor de signos vitales", procedure_tag="GENERAL"),
]


@pytest.fixture
def fake_store():
    """Factory for FakeStore instances."""
    def _make(legacy=None, catalog=None, rows=None):
        return FakeStore(
            legacy=SAMPLE_LEGACY if legacy is None else legacy,
            catalog=SAMPLE_CATALOG if catalog is None else catalog,
            rows=rows,
        )
    return _make


@pytest.fixture
def existing_row():
    """Factory for ConfigurationRow fixtures."""
    def _make(item_id, tag, min_q, max_q, default_q, row_id=None):
        return ConfigurationRow(
            catalog_item_id=item_id,
            procedure_tag=tag,
            min_quantity=min_q,
            max_quantity=max_q,
            default_quantity=default_q,
            id=row_id,
        )
    return _make


@pytest.fixture(scope="session")
def client():
    """Create a test client."""
    with TestClient(app) as c:
        yield c
