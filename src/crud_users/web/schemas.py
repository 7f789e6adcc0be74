"""Pydantic schemas for the Web API.

Response models only: request bodies are decoded as raw JSON and checked by
crud_users.utils.validators so that malformed input maps to 400.
"""

from __future__ import annotations

from pydantic import BaseModel


class UserResponse(BaseModel):
    """Response for a user."""

    uuid: str
    fullname: str
    study_level: str
    age: int

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Confirmation message."""

    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
