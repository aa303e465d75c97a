"""
Testes do pool de conexões: montagem da URL e tentativas de conexão.
"""

from urllib.parse import quote_plus

from sqlalchemy.engine import URL

from eventhorizon.config import AppConfig
from eventhorizon.storage import Database, DatabaseUnavailableError
from eventhorizon.storage import database as database_module
from eventhorizon.storage.database import build_database_url

import pytest


class TestBuildDatabaseUrl:

    def test_credentials_form(self):
        config = AppConfig(
            db_user="sa",
            db_password="s3cret",
            db_server="db.local",
            db_name="events",
        )

        url = build_database_url(config)

        assert isinstance(url, URL)
        assert url.drivername == "mssql+pyodbc"
        assert url.host == "db.local"
        assert url.port == 1433
        assert url.database == "events"
        assert url.username == "sa"
        assert url.query["Encrypt"] == "yes"
        assert url.query["TrustServerCertificate"] == "yes"
        assert url.query["driver"] == "ODBC Driver 18 for SQL Server"

    def test_odbc_connection_string_is_wrapped(self):
        config = AppConfig(
            db_connection_string="Driver={ODBC Driver 18 for SQL Server};Server=db.local;Database=events",
            db_trust_server_certificate=False,
        )

        url = build_database_url(config)

        assert url.startswith("mssql+pyodbc:///?odbc_connect=")
        assert quote_plus("Encrypt=yes;") in url
        assert quote_plus("TrustServerCertificate=no;") in url

    def test_odbc_connection_string_keeps_explicit_flags(self):
        config = AppConfig(db_connection_string="Server=db.local;Encrypt=no;")

        url = build_database_url(config)

        assert quote_plus("Encrypt=yes") not in url

    def test_sqlalchemy_connection_string_passes_through(self):
        config = AppConfig(db_connection_string="mssql+pyodbc://sa:pw@dsn")

        assert build_database_url(config) == "mssql+pyodbc://sa:pw@dsn"

    def test_database_url_has_priority(self):
        config = AppConfig(database_url="sqlite://", db_connection_string="Server=x;", db_server="y")

        assert build_database_url(config) == "sqlite://"


class TestConnectionLifecycle:

    def test_session_before_connect_raises(self):
        database = Database(AppConfig(database_url="sqlite://"))

        with pytest.raises(DatabaseUnavailableError):
            with database.session():
                pass

    def test_retries_until_connected(self, monkeypatch):
        real_factory = database_module.create_engine_from_config
        calls = []

        def flaky(config):
            calls.append(config)
            if len(calls) < 3:
                raise ValueError("server not reachable")
            return real_factory(config)

        monkeypatch.setattr(database_module, "create_engine_from_config", flaky)
        database = Database(AppConfig(database_url="sqlite://", db_connect_retry_seconds=0.01))

        database.start()

        assert database.wait_until_connected(timeout=5)
        assert database.attempts == 3
        database.close()

    def test_close_stops_retry_loop(self, monkeypatch):
        def always_down(config):
            raise ValueError("server not reachable")

        monkeypatch.setattr(database_module, "create_engine_from_config", always_down)
        database = Database(AppConfig(database_url="sqlite://", db_connect_retry_seconds=0.01))

        database.start()
        database.close()

        assert database.is_connected is False
        assert database.wait_until_connected(timeout=0) is False

    def test_pool_opened_after_close_is_discarded(self, monkeypatch):
        real_factory = database_module.create_engine_from_config
        engines = []

        def tracking(config):
            engine = real_factory(config)
            engines.append(engine)
            return engine

        monkeypatch.setattr(database_module, "create_engine_from_config", tracking)
        database = Database(AppConfig(database_url="sqlite://"))
        database.close()

        # tentativa lenta que termina depois do close()
        assert database.connect() is False

        assert len(engines) == 1
        assert database.is_connected is False
        assert database.engine is None

    def test_close_disposes_pool(self, database):
        assert database.ping() is True

        database.close()

        assert database.is_connected is False
        assert database.ping() is False
