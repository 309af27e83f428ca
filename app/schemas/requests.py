"""
Request bodies accepted from the Cliq bot.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _stringify(value: object) -> object:
    # Bots may send numeric ids; store them the way Jibble returns them.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class RegistrationRequest(BaseModel):
    """Link a Cliq user to a Jibble person."""

    cliq_user_id: str = Field(..., description="Identifier of the Cliq user.")
    cliq_user_name: Optional[str] = Field(None, description="Display name in Cliq.")
    jibble_person_id: Optional[str] = Field(
        None, description="Jibble person identifier, when known."
    )
    jibble_email: Optional[str] = Field(
        None,
        description="Email used to look up the Jibble person when no id is given.",
    )

    @field_validator("cliq_user_id", "jibble_person_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: object) -> object:
        return _stringify(value)


class ClockInRequest(BaseModel):
    cliq_user_id: str
    project_id: Optional[str] = None
    activity_id: Optional[str] = None
    note: Optional[str] = None

    @field_validator("cliq_user_id", "project_id", "activity_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: object) -> object:
        return _stringify(value)


class ClockOutRequest(BaseModel):
    cliq_user_id: str
    note: Optional[str] = None

    @field_validator("cliq_user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: object) -> object:
        return _stringify(value)


__all__ = ["ClockInRequest", "ClockOutRequest", "RegistrationRequest"]
