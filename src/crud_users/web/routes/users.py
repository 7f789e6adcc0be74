"""User endpoints.

Handlers are plain functions so FastAPI runs each request in its threadpool;
the store calls they make are blocking.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from crud_users.core.user_service import Outcome, ServiceResult, UserService
from crud_users.db.users_repository import UserRecord
from crud_users.web.dependencies import get_user_service, read_json_body
from crud_users.web.schemas import MessageResponse, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])

# Outcome -> (status code, client-facing detail)
ERROR_RESPONSES = {
    Outcome.INVALID: (status.HTTP_400_BAD_REQUEST, "Invalid user data"),
    Outcome.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "User not found"),
    Outcome.STORE_ERROR: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
}


def _raise_for_result(result: ServiceResult) -> None:
    """Raise the HTTPException matching a failed result."""
    if result.ok:
        return
    status_code, detail = ERROR_RESPONSES[result.outcome]
    raise HTTPException(status_code=status_code, detail=detail)


def _to_response(user: UserRecord) -> UserResponse:
    return UserResponse(**user.to_dict())


@router.get("", response_model=list[UserResponse])
def list_users(service: UserService = Depends(get_user_service)) -> list[UserResponse]:
    """List all users."""
    result = service.list_users()
    _raise_for_result(result)
    return [_to_response(user) for user in result.value]


@router.get("/{user_uuid}", response_model=UserResponse)
def get_user(
    user_uuid: str, service: UserService = Depends(get_user_service)
) -> UserResponse:
    """Get a specific user by uuid."""
    result = service.get_user(user_uuid)
    _raise_for_result(result)
    return _to_response(result.value)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: Any = Depends(read_json_body),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Create a new user."""
    result = service.create_user(payload)
    _raise_for_result(result)
    return _to_response(result.value)


@router.put("/{user_uuid}", response_model=UserResponse)
def update_user(
    user_uuid: str,
    payload: Any = Depends(read_json_body),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Replace all fields of an existing user."""
    result = service.update_user(user_uuid, payload)
    _raise_for_result(result)
    return _to_response(result.value)


@router.delete("/{user_uuid}", response_model=MessageResponse)
def delete_user(
    user_uuid: str, service: UserService = Depends(get_user_service)
) -> MessageResponse:
    """Delete a user by uuid."""
    result = service.delete_user(user_uuid)
    _raise_for_result(result)
    return MessageResponse(message="User deleted")
