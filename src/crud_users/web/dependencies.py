"""Request dependencies shared by the route handlers."""

from __future__ import annotations

import json
from typing import Any

from fastapi import Request

from crud_users.core.user_service import UserService
from crud_users.db.store import Store


def get_store(request: Request) -> Store:
    """Store handle created by the application lifespan."""
    return request.app.state.store


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def read_json_body(request: Request) -> Any:
    """Decode the request body as JSON.

    Returns None for an empty or malformed body, which then fails payload
    validation like any other invalid input.
    """
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
