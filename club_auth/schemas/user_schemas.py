"""
User-related Pydantic schemas for responses.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class PublicUser(BaseModel):
    """
    Public user view returned across the service boundary.

    Never carries the password hash or the update timestamp.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Opaque user id")
    email: str = Field(..., description="Registered email address")
    username: str = Field(..., description="Lowercase username")
    is_verified: bool = Field(..., description="Whether the email address has been verified")
    created_at: datetime = Field(..., description="Account creation time")


class TokenDelivery(BaseModel):
    """Payload handed to the notifier: who to greet and what token to send."""

    username: str
    token: str


class DeletionResult(BaseModel):
    message: str
