"""
Jibble OAuth utilities.

The relay authenticates as itself with the client-credentials grant; there is
no end-user consent step.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fastapi import status

from app.core.config import JibbleSettings
from app.core.errors import AuthError

logger = logging.getLogger(__name__)


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class JibbleOAuthClient:
    """Exchange the configured client id/secret for an access token."""

    def __init__(
        self,
        jibble_settings: JibbleSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._jibble = jibble_settings
        self._transport = transport

    @property
    def token_url(self) -> str:
        return str(self._jibble.token_url)

    async def request_token(self) -> str:
        """Perform the client-credentials exchange and return the access token."""
        payload = {
            "grant_type": "client_credentials",
            "client_id": self._jibble.client_id,
            "client_secret": self._jibble.client_secret,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._jibble.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            logger.error("Jibble token endpoint unreachable: %s", exc)
            raise AuthError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            error = _error_payload(response)
            logger.error(
                "Jibble token request rejected (%s): %s", response.status_code, error
            )
            raise AuthError(
                f"Token request rejected with status {response.status_code}.",
                payload=error,
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise AuthError(
                "Token endpoint returned a non-JSON body.", payload=response.text
            ) from exc

        access_token = (
            token_payload.get("access_token") if isinstance(token_payload, dict) else None
        )
        if not access_token:
            raise AuthError(
                "Token endpoint returned no access token.", payload=token_payload
            )

        return access_token


__all__ = ["JibbleOAuthClient"]
