"""Application configuration loader.

Loads defaults, then an optional YAML file (config/app_config.yaml or the
path in CRUD_USERS_CONFIG), then environment variable overrides.

Usage:
    from crud_users.config.app_config import load_app_config

    config = load_app_config()
    port = config.server.port
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_FILE = Path("config/app_config.yaml")
CONFIG_FILE_ENV = "CRUD_USERS_CONFIG"
LOG_FILE_NAME = "app.log"

# Bundled schema scripts live next to the package
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

# Environment variable -> (section, key, type)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "HOST": ("server", "host", str),
    "PORT": ("server", "port", int),
    "DB_DRIVER": ("database", "driver", str),
    "DB_HOST": ("database", "host", str),
    "DB_USER": ("database", "user", str),
    "DB_PASSWORD": ("database", "password", str),
    "DB_NAME": ("database", "name", str),
    "DB_PORT": ("database", "port", int),
    "DB_PATH": ("database", "path", str),
    "LOG_DIR": ("logging", "log_dir", str),
    "LOG_LEVEL": ("logging", "level", str),
}


@dataclass
class ServerConfig:
    """HTTP listener settings."""

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class DatabaseConfig:
    """Database connection settings.

    driver selects the store: "sqlite" uses `path`, "postgres" uses
    host/user/password/name/port and a connection pool.
    """

    driver: str = "sqlite"
    host: str = "localhost"
    user: str = "postgres"
    password: str = ""
    name: str = "crud_app"
    port: int = 5432
    path: str = "db/crud_app.db"
    min_connections: int = 1
    max_connections: int = 10


@dataclass
class LoggingConfig:
    """Log sink settings."""

    log_dir: str = "/var/logs/crud"
    level: str = "INFO"

    @property
    def log_file(self) -> Path:
        return Path(self.log_dir) / LOG_FILE_NAME


@dataclass
class AppConfig:
    """Application-wide configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    migrations_dir: Path = DEFAULT_MIGRATIONS_DIR


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "server": {"host": "0.0.0.0", "port": 3000},
        "database": {
            "driver": "sqlite",
            "host": "localhost",
            "user": "postgres",
            "password": "",
            "name": "crud_app",
            "port": 5432,
            "path": "db/crud_app.db",
            "min_connections": 1,
            "max_connections": 10,
        },
        "logging": {"log_dir": "/var/logs/crud", "level": "INFO"},
        "migrations_dir": str(DEFAULT_MIGRATIONS_DIR),
    }


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a (possibly partial) config mapping into the defaults."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Apply recognized environment variables on top of file/default values.

    Raises:
        ValueError: If a numeric variable is not an integer
    """
    for env_name, (section, key, value_type) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        if value_type is int:
            try:
                value: Any = int(raw)
            except ValueError:
                raise ValueError(f"{env_name} must be an integer, got '{raw}'") from None
        else:
            value = raw
        data.setdefault(section, {})[key] = value

    migrations_dir = environ.get("MIGRATIONS_DIR")
    if migrations_dir:
        data["migrations_dir"] = migrations_dir

    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    server_data = data.get("server", {})
    db_data = data.get("database", {})
    log_data = data.get("logging", {})

    server = ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=int(server_data.get("port", 3000)),
    )
    database = DatabaseConfig(
        driver=str(db_data.get("driver", "sqlite")).lower(),
        host=db_data.get("host", "localhost"),
        user=db_data.get("user", "postgres"),
        password=db_data.get("password", ""),
        name=db_data.get("name", "crud_app"),
        port=int(db_data.get("port", 5432)),
        path=db_data.get("path", "db/crud_app.db"),
        min_connections=int(db_data.get("min_connections", 1)),
        max_connections=int(db_data.get("max_connections", 10)),
    )
    logging_config = LoggingConfig(
        log_dir=log_data.get("log_dir", "/var/logs/crud"),
        level=str(log_data.get("level", "INFO")).upper(),
    )

    return AppConfig(
        server=server,
        database=database,
        logging=logging_config,
        migrations_dir=Path(data.get("migrations_dir", DEFAULT_MIGRATIONS_DIR)),
    )


def load_app_config(
    force_reload: bool = False,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if environ is None:
        environ = os.environ

    data = _get_defaults()
    config_file = Path(environ.get(CONFIG_FILE_ENV) or CONFIG_FILE)

    if config_file.exists():
        logger.debug("loading_app_config", source=str(config_file))
        file_data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.debug("using_default_config")

    data = _apply_env_overrides(data, environ)

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
