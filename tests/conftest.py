"""
Fixtures compartilhadas: app FastAPI sobre SQLite em memória.
"""

import pytest
from fastapi.testclient import TestClient

from eventhorizon.api.http import create_app
from eventhorizon.config import AppConfig
from eventhorizon.storage import Database


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        database_url="sqlite://",
        db_create_tables=True,
        db_connect_retry_seconds=0.01,
    )


@pytest.fixture
def database(config: AppConfig):
    db = Database(config)
    assert db.connect()
    yield db
    db.close()


@pytest.fixture
def app(config: AppConfig, database: Database):
    return create_app(config, database)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_event(client):
    def _make(name="Launch", date="2025-06-01T10:00:00Z", location="HQ"):
        resp = client.post("/events", json={"name": name, "date": date, "location": location})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make
