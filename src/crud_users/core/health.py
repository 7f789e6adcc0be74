"""Database liveness probe."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from crud_users.db.store import Store
from crud_users.errors import StoreUnavailableError

logger = structlog.get_logger(__name__)


@dataclass
class HealthStatus:
    """Result of a health check."""

    healthy: bool
    error: str | None = None

    @property
    def status(self) -> str:
        return "OK" if self.healthy else "ERROR"

    @property
    def database(self) -> str:
        return "connected" if self.healthy else "disconnected"


def check_health(store: Store) -> HealthStatus:
    """Run a round-trip query against the store."""
    try:
        store.ping()
    except StoreUnavailableError as e:
        logger.error("health_check_failed", error=str(e))
        return HealthStatus(healthy=False, error=str(e))

    logger.info("health_check_ok")
    return HealthStatus(healthy=True)
