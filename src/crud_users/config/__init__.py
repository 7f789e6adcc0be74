"""Configuration package for the users service."""

from crud_users.config.app_config import (
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    ServerConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "ServerConfig",
    "clear_config_cache",
    "load_app_config",
]
