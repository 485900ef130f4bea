"""Request and response schemas for the ResetShield API."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with attribute extraction enabled."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class SystemHealth(BaseSchema):
    status: str
    message: str


class SecureActionResponse(BaseSchema):
    status: str
    data: str


class ResetRequest(BaseSchema):
    device_id: str
    action: Optional[str] = None
    check_only: Optional[bool] = None


class ResetAllowed(BaseSchema):
    status: str = "allowed"
    message: str
    remaining_attempts: Optional[int] = None


class ResetDenied(BaseSchema):
    status: str = "error"
    message: str
    cooldown_remaining: int
