"""
Lifecycle of the Jibble access token: acquire, cache, persist, invalidate.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from app.clients.json_store import JsonStore
from app.core.errors import AuthError
from app.models.oauth import Credential
from app.services.credential_cipher import CredentialCipher

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    async def request_token(self) -> str:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Owns the single access credential shared by every upstream call.

    The in-memory credential is reused until ``expires_at``. Acquisition is
    single-flight: concurrent callers that find the credential missing or
    expired wait on one exchange instead of each issuing their own.
    """

    def __init__(
        self,
        *,
        oauth_client: TokenSource,
        store: JsonStore,
        cipher: CredentialCipher,
        ttl: timedelta = timedelta(minutes=50),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._oauth = oauth_client
        self._store = store
        self._cipher = cipher
        self._ttl = ttl
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._persisted_checked = False
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    def _cached_token(self) -> Optional[str]:
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential.access_token
        return None

    def _adopt_persisted(self) -> bool:
        """Load the stored credential once per process; adopt it if unexpired."""
        if self._persisted_checked:
            return False
        self._persisted_checked = True

        record = self._store.get_credential()
        if not record:
            return False
        try:
            credential = self._cipher.unseal(record)
        except ValueError as exc:
            logger.warning("Ignoring persisted Jibble credential: %s", exc)
            return False
        if not credential.is_valid(self._clock()):
            logger.info("Persisted Jibble credential expired at %s", credential.expires_at)
            return False

        self._credential = credential
        logger.info(
            "Reusing persisted Jibble credential valid until %s", credential.expires_at
        )
        return True

    async def _acquire(self) -> str:
        requested_at = self._clock()
        access_token = await self._oauth.request_token()
        credential = Credential(
            access_token=access_token,
            expires_at=requested_at + self._ttl,
            last_updated=requested_at,
        )
        self._credential = credential
        self._store.put_credential(self._cipher.seal(credential))
        logger.info("Acquired Jibble access token valid until %s", credential.expires_at)
        return access_token

    async def get_valid_token(self) -> str:
        """Return a usable access token, acquiring one if needed.

        Raises ``AuthError`` when the token endpoint cannot issue a token.
        Failures are not cached.
        """
        token = self._cached_token()
        if token is not None:
            return token

        async with self._lock:
            token = self._cached_token()
            if token is not None:
                return token
            if self._adopt_persisted():
                token = self._cached_token()
                if token is not None:
                    return token
            return await self._acquire()

    async def warm_start(self) -> None:
        """Adopt a persisted credential or acquire a fresh one at startup."""
        try:
            await self.get_valid_token()
        except AuthError as exc:
            logger.warning("Could not obtain a Jibble token at startup: %s", exc.message)

    def invalidate(self, rejected_token: Optional[str] = None) -> None:
        """Forget the in-memory credential so the next call re-acquires.

        When ``rejected_token`` is given, the cache is only cleared if it still
        holds that token; a credential refreshed meanwhile is kept.
        """
        if self._credential is None:
            return
        if rejected_token is not None and rejected_token != self._credential.access_token:
            logger.info("Ignoring rejection of an already replaced Jibble token")
            return
        logger.warning("Invalidating Jibble access token after auth failure")
        self._credential = None


__all__ = ["TokenManager", "TokenSource"]
