"""Shared fixtures for the HTTP tests."""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from fastapi.testclient import TestClient

from app import database
from app.database import build_engine, build_sessionmaker, get_match_store
from app.main import app
from app.services.match_store import MatchRecordStore


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Store on a throwaway SQLite file; the app lifespan creates its tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setattr(database, "async_engine", engine)
    return MatchRecordStore(build_sessionmaker(engine))


@pytest.fixture
def client(store):
    app.dependency_overrides[get_match_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
