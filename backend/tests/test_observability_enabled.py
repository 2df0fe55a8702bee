from __future__ import annotations

import importlib
import os

import pytest
from fastapi.testclient import TestClient

from app.db.deps import get_db
from app.observability import client as client_module
from conftest import auth_headers


class _DummyTrace:
    def __init__(self, metadata=None, **kwargs):
        self.metadata = metadata or {}

    def update(self, metadata=None, **kwargs):
        if metadata:
            self.metadata = metadata

    def end(self):
        pass


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.traces = []

    def trace(self, **kwargs):
        trace = _DummyTrace(metadata=kwargs.get("metadata"))
        self.traces.append(trace)
        return trace


@pytest.mark.skipif("OPIK_API_KEY" not in os.environ, reason="OPIK_API_KEY env var required for Opik tests")
def test_app_runs_with_opik_enabled(monkeypatch, session_factory, user_id):
    api_key = os.environ["OPIK_API_KEY"]
    monkeypatch.setenv("OPIK_ENABLED", "true")
    monkeypatch.setenv("OPIK_PROJECT", "deepflow-test")
    monkeypatch.setenv("OPIK_API_KEY", api_key)

    import app.core.config as config_module
    import app.main as main_module

    importlib.reload(config_module)
    importlib.reload(client_module)
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    client_module.reset_opik_client()
    reloaded_main = importlib.reload(main_module)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    reloaded_main.app.dependency_overrides[get_db] = override_get_db

    with TestClient(reloaded_main.app) as test_client:
        assert test_client.get("/health").status_code == 200
        resp = test_client.post(
            "/tasks",
            json={"title": "Trace the opik path", "priority": "high"},
            headers=auth_headers(user_id),
        )
        assert resp.status_code == 201

    reloaded_main.app.dependency_overrides.clear()

    monkeypatch.setenv("OPIK_ENABLED", "false")
    importlib.reload(config_module)
    importlib.reload(client_module)
    client_module.reset_opik_client()
    importlib.reload(main_module)
