"""
Health check, ciclo de vida do pool e mapeamento de erros.
"""

from dataclasses import replace

from fastapi.testclient import TestClient

from eventhorizon.api.http import create_app
from eventhorizon.storage import Base, Database


def test_health_reports_connected_database(client):
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "connected", "dbConnected": True}
    assert client.get("/health").json() == resp.json()


def test_request_id_header(client):
    resp = client.get("/events")

    assert len(resp.headers["X-Request-ID"]) == 16


def test_requests_before_connection_get_503(config):
    database = Database(config)
    app = create_app(config, database)
    client = TestClient(app)  # sem lifespan: o pool nunca é aberto

    events = client.get("/events")
    created = client.post("/events", json={"name": "a", "date": "2025-01-01", "location": "b"})
    health = client.get("/")

    assert events.status_code == 503
    assert events.json()["error"] == "Database unavailable"
    assert created.status_code == 503
    assert health.status_code == 200
    assert health.json()["dbConnected"] is False
    assert health.json()["status"] == "degraded"


def test_lifespan_opens_and_closes_the_pool(config):
    database = Database(config)
    app = create_app(config, database)

    with TestClient(app) as client:
        assert database.wait_until_connected(timeout=5)
        assert client.get("/events").status_code == 200

    assert database.is_connected is False


def test_database_error_returns_500_with_details(client, database):
    Base.metadata.drop_all(bind=database.engine)

    resp = client.get("/events")

    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to fetch events"
    assert "details" in resp.json()


def test_database_error_hides_details_in_production(config, database):
    prod = replace(config, env="prod")
    with TestClient(create_app(prod, database)) as client:
        Base.metadata.drop_all(bind=database.engine)

        resp = client.post("/events", json={"name": "a", "date": "2025-01-01", "location": "b"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create event"}


def test_unexpected_error_becomes_500(app, database, monkeypatch):
    def boom():
        raise RuntimeError("boom")

    monkeypatch.setattr(app.state.events, "list_events", boom)
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.get("/events")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "details": "boom"}


def test_cors_allows_configured_origin(client):
    resp = client.get("/events", headers={"Origin": "http://localhost:3000"})

    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_cors_ignores_unknown_origin(client):
    resp = client.get("/events", headers={"Origin": "http://evil.example"})

    assert "access-control-allow-origin" not in resp.headers


def test_static_front_end_is_served(config, database, tmp_path):
    (tmp_path / "index.html").write_text("<html>board</html>")
    app = create_app(replace(config, static_dir=str(tmp_path)), database)

    with TestClient(app) as client:
        resp = client.get("/ui/")

    assert resp.status_code == 200
    assert "board" in resp.text
