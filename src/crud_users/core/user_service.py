"""User operations with explicit results.

Each operation returns a ServiceResult instead of raising, so the web layer
only has to map the outcome to a status code:

    OK / CREATED  -> 200 / 201
    INVALID       -> 400
    NOT_FOUND     -> 404
    STORE_ERROR   -> 500

Store errors are logged here with the operation and identifier; invalid
payloads and misses are logged as warnings.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from crud_users.db import users_repository
from crud_users.db.store import Store
from crud_users.db.users_repository import UserRecord
from crud_users.errors import (
    CrudUsersError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from crud_users.utils.validators import UserPayload, parse_user_payload

logger = structlog.get_logger(__name__)


class Outcome(str, Enum):
    """Result category of a service operation."""

    OK = "ok"
    CREATED = "created"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


@dataclass
class ServiceResult:
    """Outcome of a service operation plus its value or error."""

    outcome: Outcome
    value: Any = None
    error: CrudUsersError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.OK, Outcome.CREATED)

    @classmethod
    def invalid(cls) -> ServiceResult:
        return cls(Outcome.INVALID, error=ValidationError())

    @classmethod
    def not_found(cls, user_uuid: str) -> ServiceResult:
        return cls(Outcome.NOT_FOUND, error=NotFoundError(user_uuid))

    @classmethod
    def store_error(cls, error: StoreUnavailableError) -> ServiceResult:
        return cls(Outcome.STORE_ERROR, error=error)


def generate_user_uuid() -> str:
    """Generate a random (version 4) UUID string."""
    return str(uuid.uuid4())


class UserService:
    """CRUD operations on users, bound to one store handle."""

    def __init__(self, store: Store):
        self.store = store

    def list_users(self) -> ServiceResult:
        try:
            users = users_repository.list_users(self.store)
        except StoreUnavailableError as e:
            return self._store_failure("list_users", e)

        logger.info("users_listed", count=len(users))
        return ServiceResult(Outcome.OK, value=users)

    def get_user(self, user_uuid: str) -> ServiceResult:
        try:
            user = users_repository.get_user(self.store, user_uuid)
        except StoreUnavailableError as e:
            return self._store_failure("get_user", e, uuid=user_uuid)

        if user is None:
            logger.warning("user_not_found", operation="get_user", uuid=user_uuid)
            return ServiceResult.not_found(user_uuid)

        logger.info("user_found", uuid=user_uuid)
        return ServiceResult(Outcome.OK, value=user)

    def create_user(self, payload: Any) -> ServiceResult:
        data = parse_user_payload(payload)
        if data is None:
            logger.warning("user_payload_invalid", operation="create_user", body=payload)
            return ServiceResult.invalid()

        user = _record_from_payload(generate_user_uuid(), data)
        try:
            users_repository.insert_user(self.store, user)
        except StoreUnavailableError as e:
            return self._store_failure("create_user", e, uuid=user.uuid)

        logger.info("user_created", uuid=user.uuid)
        return ServiceResult(Outcome.CREATED, value=user)

    def update_user(self, user_uuid: str, payload: Any) -> ServiceResult:
        data = parse_user_payload(payload)
        if data is None:
            logger.warning(
                "user_payload_invalid", operation="update_user", uuid=user_uuid, body=payload
            )
            return ServiceResult.invalid()

        user = _record_from_payload(user_uuid, data)
        try:
            # Existence check and update are separate statements; a concurrent
            # delete in between turns the update into a no-op.
            if not users_repository.user_exists(self.store, user_uuid):
                logger.warning("user_not_found", operation="update_user", uuid=user_uuid)
                return ServiceResult.not_found(user_uuid)
            users_repository.update_user(self.store, user)
        except StoreUnavailableError as e:
            return self._store_failure("update_user", e, uuid=user_uuid)

        logger.info("user_updated", uuid=user_uuid)
        return ServiceResult(Outcome.OK, value=user)

    def delete_user(self, user_uuid: str) -> ServiceResult:
        try:
            deleted = users_repository.delete_user(self.store, user_uuid)
        except StoreUnavailableError as e:
            return self._store_failure("delete_user", e, uuid=user_uuid)

        if deleted == 0:
            logger.warning("user_not_found", operation="delete_user", uuid=user_uuid)
            return ServiceResult.not_found(user_uuid)

        logger.info("user_deleted", uuid=user_uuid)
        return ServiceResult(Outcome.OK, value=user_uuid)

    def _store_failure(
        self, operation: str, error: StoreUnavailableError, **context: Any
    ) -> ServiceResult:
        logger.error("store_operation_failed", operation=operation, error=str(error), **context)
        return ServiceResult.store_error(error)


def _record_from_payload(user_uuid: str, data: UserPayload) -> UserRecord:
    return UserRecord(
        uuid=user_uuid,
        fullname=data.fullname,
        study_level=data.study_level,
        age=data.age,
    )
