"""
Request logging middleware: reconciliation thresholds, run id and
run-lock annotations.
"""
import sys
import os
import logging
from contextlib import contextmanager
from types import SimpleNamespace

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from api.dependencies import get_run_guard
from api.main import app
from api.middleware.logging import (
    SLOW_REQUEST_MS,
    SLOW_RECONCILE_MS,
    format_request_line,
    slow_threshold_ms,
)
from api.routers import reconciliation as recon_router
from scripts.reconciliation.pipeline import RunGuard


def _request(method="POST", path="/api/catalog/reconcile"):
    return SimpleNamespace(method=method, url=SimpleNamespace(path=path))


@pytest.fixture
def guarded_app(monkeypatch, fake_store):
    guard = RunGuard()
    store = fake_store()

    @contextmanager
    def fake_db():
        yield object()

    monkeypatch.setattr(recon_router, "get_db", fake_db)
    monkeypatch.setattr(recon_router, "PostgresStore", lambda conn: store)
    app.dependency_overrides[get_run_guard] = lambda: guard
    yield guard
    app.dependency_overrides.pop(get_run_guard, None)


def test_reconcile_paths_get_long_threshold():
    assert slow_threshold_ms("/api/catalog/reconcile") == SLOW_RECONCILE_MS
    assert slow_threshold_ms("/api/catalog/similarity-report") == SLOW_RECONCILE_MS
    assert slow_threshold_ms("/api/health") == SLOW_REQUEST_MS


def test_line_includes_run_id():
    line = format_request_line(_request(), 200, 12.5, run_id="ab12cd34")
    assert line == "POST /api/catalog/reconcile status=200 duration=12.5ms run=ab12cd34"


def test_line_marks_busy_lock():
    line = format_request_line(_request(), 409, 1.0)
    assert line.endswith("run_lock=busy")
    assert "run=" not in line


def test_run_logged_with_id(client, guarded_app, caplog):
    with caplog.at_level(logging.INFO, logger="supply_api"):
        r = client.post("/api/catalog/reconcile", json={})
    run_id = r.json()["run_id"]
    assert any(f"run={run_id}" in rec.getMessage() for rec in caplog.records)


def test_rejected_run_logged_as_warning(client, guarded_app, caplog):
    with caplog.at_level(logging.INFO, logger="supply_api"):
        with guarded_app.hold():
            client.post("/api/catalog/reconcile", json={})
    busy = [rec for rec in caplog.records if "run_lock=busy" in rec.getMessage()]
    assert busy
    assert busy[0].levelno == logging.WARNING
