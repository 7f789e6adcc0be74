"""Error taxonomy for the users service.

ValidationError and NotFoundError are expected outcomes surfaced to the
caller as 400/404. StoreUnavailableError is raised by the store layer and
handled per request. MigrationFailure is fatal and aborts startup.
"""

from __future__ import annotations


class CrudUsersError(Exception):
    """Base error for the users service."""

    pass


class ValidationError(CrudUsersError):
    """Raised when a user payload is missing fields or has wrong types."""

    def __init__(self, message: str = "Invalid user data"):
        super().__init__(message)


class NotFoundError(CrudUsersError):
    """Raised when no user matches the given identifier."""

    def __init__(self, user_uuid: str):
        self.user_uuid = user_uuid
        super().__init__(f"User '{user_uuid}' not found")


class StoreUnavailableError(CrudUsersError):
    """Raised when the database cannot be reached or a query fails."""

    pass


class MigrationFailure(CrudUsersError):
    """Raised when a migration cannot be applied. Startup must stop."""

    def __init__(self, message: str, script: str | None = None):
        self.script = script
        if script:
            message = f"{message} (script: {script})"
        super().__init__(message)
