"""Shared test fixtures for all test modules."""

import pytest
from fastapi.testclient import TestClient

from pastedrop.config import settings
from pastedrop.database import FilePasteStore, SQLPasteStore, get_store
from pastedrop.main import app


@pytest.fixture(params=["file", "sql"])
def store(request, tmp_path):
    """Each store-backed test runs once per backend."""
    if request.param == "file":
        yield FilePasteStore(str(tmp_path / "pastes.json"))
    else:
        sql_store = SQLPasteStore(f"sqlite:///{tmp_path / 'pastes.db'}")
        yield sql_store
        sql_store.engine.dispose()


@pytest.fixture
def client(store):
    """TestClient wired to the parametrized store."""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def test_mode(monkeypatch):
    """Honour the x-test-now-ms header for the duration of a test."""
    monkeypatch.setattr(settings, "TEST_MODE", True)
