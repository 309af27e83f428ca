"""
Domain models for OAuth token persistence.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Credential(BaseModel):
    """Access token issued by the Jibble client-credentials grant."""

    access_token: str = Field(..., description="Opaque bearer token.")
    expires_at: datetime = Field(
        ..., description="Instant after which the token is no longer reused."
    )
    last_updated: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class StoredCredential(BaseModel):
    """Represents the credential record kept in the JSON store."""

    access_token_encrypted: str
    expires_at: datetime
    last_updated: datetime


__all__ = ["Credential", "StoredCredential"]
