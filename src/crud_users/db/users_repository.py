"""Repository functions for the users table.

Provides CRUD operations for the users table. Every function takes the
store handle explicitly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import structlog

from crud_users.db.store import Store

logger = structlog.get_logger(__name__)

USER_COLUMNS = "uuid, fullname, study_level, age"


@dataclass
class UserRecord:
    """User record from database."""

    uuid: str
    fullname: str
    study_level: str
    age: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def list_users(store: Store) -> list[UserRecord]:
    """Get all users in the store's native order."""
    rows = store.fetch_all(f"SELECT {USER_COLUMNS} FROM users")
    return [_row_to_record(row) for row in rows]


def get_user(store: Store, user_uuid: str) -> UserRecord | None:
    """Get user by uuid.

    Returns:
        UserRecord if found, None otherwise
    """
    row = store.fetch_one(
        f"SELECT {USER_COLUMNS} FROM users WHERE uuid = ?", (user_uuid,)
    )
    if row is None:
        return None

    return _row_to_record(row)


def user_exists(store: Store, user_uuid: str) -> bool:
    row = store.fetch_one("SELECT uuid FROM users WHERE uuid = ?", (user_uuid,))
    return row is not None


def insert_user(store: Store, record: UserRecord) -> None:
    """Insert a new user record.

    Raises:
        StoreUnavailableError: If the insert fails (including a uuid clash)
    """
    store.execute(
        "INSERT INTO users (uuid, fullname, study_level, age) VALUES (?, ?, ?, ?)",
        (record.uuid, record.fullname, record.study_level, record.age),
    )
    logger.debug("users.inserted", uuid=record.uuid)


def update_user(store: Store, record: UserRecord) -> int:
    """Overwrite all mutable fields of a user.

    Returns:
        Number of rows updated (0 if the uuid does not exist)
    """
    updated = store.execute(
        "UPDATE users SET fullname = ?, study_level = ?, age = ? WHERE uuid = ?",
        (record.fullname, record.study_level, record.age, record.uuid),
    )
    logger.debug("users.updated", uuid=record.uuid, rows=updated)
    return updated


def delete_user(store: Store, user_uuid: str) -> int:
    """Delete a user permanently.

    Returns:
        Number of rows deleted (0 if the uuid does not exist)
    """
    deleted = store.execute("DELETE FROM users WHERE uuid = ?", (user_uuid,))
    logger.debug("users.deleted", uuid=user_uuid, rows=deleted)
    return deleted


def _row_to_record(row: dict[str, Any]) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        uuid=row["uuid"],
        fullname=row["fullname"],
        study_level=row["study_level"],
        age=int(row["age"]),
    )
