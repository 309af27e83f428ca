try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone

import pytest

from app.models.oauth import Credential
from app.services.credential_cipher import CredentialCipher

ISSUED = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _credential() -> Credential:
    return Credential(
        access_token="sensitive-token",
        expires_at=ISSUED + timedelta(minutes=50),
        last_updated=ISSUED,
    )


def test_sealed_record_hides_token() -> None:
    cipher = CredentialCipher(secret="super-secret-key")

    record = cipher.seal(_credential())

    assert "access_token" not in record
    assert record["access_token_encrypted"] != "sensitive-token"
    assert cipher.unseal(record) == _credential()


def test_unseal_with_other_secret_fails() -> None:
    record = CredentialCipher(secret="one").seal(_credential())

    with pytest.raises(ValueError):
        CredentialCipher(secret="two").unseal(record)


def test_unseal_rejects_malformed_record() -> None:
    cipher = CredentialCipher(secret="another-secret")

    with pytest.raises(ValueError):
        cipher.unseal({"access_token": "plain"})


def test_empty_secret_rejected() -> None:
    with pytest.raises(ValueError):
        CredentialCipher(secret="")
