"""
Models for payloads returned by the Jibble API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TimeEntry(BaseModel):
    """A tracked session; ``end`` is absent while the session is open."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "Id"))
    start: datetime = Field(
        ..., validation_alias=AliasChoices("start", "startTime", "startedAt")
    )
    end: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("end", "endTime", "endedAt")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_open(self) -> bool:
        return self.end is None


__all__ = ["TimeEntry"]
