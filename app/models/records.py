"""
Records persisted in the local JSON document.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def new_record_id() -> str:
    """Random URL-safe identifier for local records."""
    return secrets.token_urlsafe(16)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Registration(BaseModel):
    """Mapping from a Cliq user to a Jibble person."""

    id: str = Field(default_factory=new_record_id)
    cliq_user_id: str
    cliq_user_name: str = "Unknown"
    jibble_person_id: Optional[str] = None
    jibble_email: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class LogType(str, Enum):
    REGISTRATION = "registration"
    UNREGISTRATION = "unregistration"
    CLOCKIN = "clockin"
    CLOCKIN_ERROR = "clockin_error"
    CLOCKOUT = "clockout"
    CLOCKOUT_ERROR = "clockout_error"


class LogRecord(BaseModel):
    """Append-only audit entry."""

    id: str = Field(default_factory=new_record_id)
    type: LogType
    cliq_user_id: str
    details: str
    timestamp: datetime = Field(default_factory=utc_now)
    upstream_response: Optional[Any] = None


__all__ = [
    "LogRecord",
    "LogType",
    "Registration",
    "new_record_id",
    "utc_now",
]
