"""Tests for the health endpoint and application startup."""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from crud_users.db.store import SQLiteStore
from crud_users.errors import MigrationFailure, StoreUnavailableError
from crud_users.web.api import create_app


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_healthy(self, client):
        """Reachable store reports OK/connected."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "OK", "database": "connected"}

    def test_unhealthy(self, client, monkeypatch):
        """Unreachable store reports ERROR/disconnected with a 500."""

        def fail_ping():
            raise StoreUnavailableError("no route to host")

        monkeypatch.setattr(client.app.state.store, "ping", fail_ping)
        response = client.get("/health")

        assert response.status_code == 500
        assert response.json() == {"status": "ERROR", "database": "disconnected"}

    def test_database_removed_after_startup(self, tmp_path, app_config):
        """A store that disappears makes health fail, never 400/404."""
        db_dir = tmp_path / "vanishing"
        store = SQLiteStore(db_dir / "app.db")
        app = create_app(app_config, store=store)

        with TestClient(app) as client:
            (db_dir / "app.db").unlink()
            db_dir.rmdir()
            response = client.get("/health")

        assert response.status_code == 500
        assert response.status_code not in (400, 404)


class TestStartup:
    """Tests for the application lifespan."""

    def test_migrations_applied_before_serving(self, client):
        """Startup creates the users table."""
        store = client.app.state.store
        applied = store.fetch_all("SELECT id FROM migrations")

        assert [row["id"] for row in applied] == ["0001_create_users.sql"]

    def test_restart_applies_nothing_new(self, app_config):
        """A second startup against the same database reuses the schema."""
        with TestClient(create_app(app_config)) as client:
            client.post(
                "/api/users", json={"fullname": "Ana Pop", "study_level": "Bachelor", "age": 21}
            )

        with TestClient(create_app(app_config)) as client:
            assert len(client.get("/api/users").json()) == 1
            rows = client.app.state.store.fetch_all("SELECT id FROM migrations")
            assert len(rows) == 1

    def test_default_config_loaded_at_startup(self, monkeypatch):
        """Building the app reads no settings; bad ones fail at startup."""
        monkeypatch.setenv("PORT", "abc")

        app = create_app()

        with pytest.raises(ValueError, match="PORT must be an integer"):
            with TestClient(app):
                pass

    def test_failed_migration_aborts_startup(self, tmp_path, app_config):
        """A broken migration stops startup with MigrationFailure."""
        migrations_dir = tmp_path / "broken_migrations"
        migrations_dir.mkdir()
        (migrations_dir / "0001_broken.sql").write_text("CREATE TABLE (;")
        app_config.migrations_dir = migrations_dir

        with pytest.raises(MigrationFailure):
            with TestClient(create_app(app_config)):
                pass

    def test_failed_migration_is_logged(self, tmp_path, app_config):
        """The failing script name reaches the JSON log."""
        migrations_dir = tmp_path / "broken_migrations"
        migrations_dir.mkdir()
        (migrations_dir / "0001_broken.sql").write_text("CREATE TABLE (;")
        app_config.migrations_dir = migrations_dir

        with pytest.raises(MigrationFailure):
            with TestClient(create_app(app_config)):
                pass

        log_file = tmp_path / "logs" / "app.log"
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        failures = [r for r in records if r["message"] == "migration_failed"]
        assert failures
        assert failures[0]["level"] == "ERROR"
        assert failures[0]["context"]["file"] == "0001_broken.sql"

    def test_request_logging_goes_to_file(self, client, valid_user, app_config):
        """Handled requests leave structured records in app.log."""
        client.post("/api/users", json=valid_user)
        client.get("/api/users/missing")

        log_file = app_config.logging.log_file
        for handler in logging.getLogger().handlers:
            handler.flush()
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        messages = {r["message"]: r for r in records}

        assert messages["user_created"]["level"] == "INFO"
        assert messages["user_not_found"]["level"] == "WARNING"
        assert messages["user_not_found"]["context"]["uuid"] == "missing"
