"""Core service logic: user operations and health checks."""

from crud_users.core.health import HealthStatus, check_health
from crud_users.core.user_service import Outcome, ServiceResult, UserService

__all__ = ["HealthStatus", "Outcome", "ServiceResult", "UserService", "check_health"]
