"""Sealing of the Jibble credential before it is written to the JSON store."""

from __future__ import annotations

import base64
import hashlib
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError as PydanticValidationError

from app.models.oauth import Credential, StoredCredential


class CredentialCipher:
    """Converts credentials to and from their encrypted stored form.

    The Fernet key is the SHA-256 digest of the configured secret, so any
    non-empty string works as a secret.
    """

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def seal(self, credential: Credential) -> Dict[str, Any]:
        """Return a JSON-ready record with the access token encrypted."""
        stored = StoredCredential(
            access_token_encrypted=self._fernet.encrypt(
                credential.access_token.encode("utf-8")
            ).decode("utf-8"),
            expires_at=credential.expires_at,
            last_updated=credential.last_updated,
        )
        return stored.model_dump(mode="json")

    def unseal(self, record: Dict[str, Any]) -> Credential:
        """Rebuild a credential from a stored record.

        Raises ``ValueError`` when the record is malformed or was sealed
        with a different secret.
        """
        try:
            stored = StoredCredential.model_validate(record)
        except PydanticValidationError as exc:
            raise ValueError("Stored credential record is malformed.") from exc
        try:
            token = self._fernet.decrypt(stored.access_token_encrypted.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt stored token; the encryption secret may have changed."
            ) from exc
        return Credential(
            access_token=token.decode("utf-8"),
            expires_at=stored.expires_at,
            last_updated=stored.last_updated,
        )


__all__ = ["CredentialCipher"]
