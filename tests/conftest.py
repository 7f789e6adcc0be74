"""Shared fixtures.

Every test gets its own SQLite file and log directory under tmp_path; no
test touches ./db or the default log directory.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from crud_users.config.app_config import (
    DEFAULT_MIGRATIONS_DIR,
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    clear_config_cache,
)
from crud_users.db.migrations import run_migrations
from crud_users.db.store import SQLiteStore
from crud_users.utils import logger as logger_module
from crud_users.web.api import create_app


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by configure_logging after each test."""
    yield
    root = logging.getLogger()
    for handler in logger_module._installed_handlers:
        root.removeHandler(handler)
        handler.close()
    logger_module._installed_handlers.clear()
    clear_config_cache()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Config pointing at temp database and log directories."""
    return AppConfig(
        database=DatabaseConfig(driver="sqlite", path=str(tmp_path / "db" / "test.db")),
        logging=LoggingConfig(log_dir=str(tmp_path / "logs")),
        migrations_dir=DEFAULT_MIGRATIONS_DIR,
    )


@pytest.fixture
def store(app_config) -> SQLiteStore:
    """Empty SQLite store (no tables)."""
    return SQLiteStore(app_config.database.path)


@pytest.fixture
def migrated_store(store) -> SQLiteStore:
    """SQLite store with the bundled migrations applied."""
    run_migrations(store, DEFAULT_MIGRATIONS_DIR)
    return store


@pytest.fixture
def client(app_config):
    """Test client with the lifespan (logging, store, migrations) running."""
    app = create_app(app_config)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def valid_user() -> dict:
    return {"fullname": "Ana Pop", "study_level": "Bachelor", "age": 21}
