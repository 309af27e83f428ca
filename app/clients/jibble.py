"""
Authenticated wrapper around the Jibble REST API.

Jibble has moved its endpoints around between API generations, so every
operation lists the candidate requests it is willing to try, in order.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from fastapi import status

from app.core.config import JibbleSettings
from app.core.errors import UpstreamAuthError, UpstreamError
from app.schemas.jibble import TimeEntry
from app.utils.http import RequestStrategy, first_successful

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def get_valid_token(self) -> str:
        ...

    def invalidate(self, rejected_token: Optional[str] = None) -> None:
        ...


_AUTH_FAILURES = (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
_LIST_KEYS = ("value", "data", "items", "results")

PEOPLE_STRATEGIES: tuple[RequestStrategy, ...] = (
    RequestStrategy("GET", "/v1/People"),
    RequestStrategy("GET", "/api/v1/people"),
    RequestStrategy("GET", "/people"),
)

PROJECT_STRATEGIES: tuple[RequestStrategy, ...] = (
    RequestStrategy("GET", "/v1/Projects"),
    RequestStrategy("GET", "/api/v1/projects"),
    RequestStrategy("GET", "/projects"),
)

DISCOVERY_PATHS: tuple[str, ...] = (
    "/v1/People",
    "/v1/Projects",
    "/api/v1/people",
    "/api/v1/projects",
    "/api/v1/me",
    "/people",
    "/projects",
)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def extract_list(payload: Any) -> List[Any]:
    """Return the list carried by a bare or wrapped collection payload."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise UpstreamError(
        "Jibble returned an unexpected collection payload.", payload=payload
    )


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class JibbleClient:
    """Relay calls to Jibble with a bearer token from the ``TokenManager``."""

    def __init__(
        self,
        jibble_settings: JibbleSettings,
        token_manager: TokenProvider,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._jibble = jibble_settings
        self._tokens = token_manager
        self._transport = transport

    @property
    def base_url(self) -> str:
        return str(self._jibble.api_base).rstrip("/")

    async def send(self, strategy: RequestStrategy) -> Any:
        """Perform a single request and return its decoded JSON body.

        Raises ``AuthError`` when no token can be obtained,
        ``UpstreamAuthError`` on 401/403 (after invalidating the token) and
        ``UpstreamError`` for every other failure.
        """
        token = await self._tokens.get_valid_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        method = strategy.method.upper()
        logger.info("Jibble %s %s", method, strategy.path)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._jibble.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    strategy.path,
                    params=dict(strategy.params) if strategy.params else None,
                    json=strategy.json,
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.warning("Jibble %s %s unreachable: %s", method, strategy.path, exc)
            raise UpstreamError(f"Jibble request failed: {exc}") from exc

        if response.status_code in _AUTH_FAILURES:
            self._tokens.invalidate(token)
            raise UpstreamAuthError(
                f"Jibble rejected the access token ({response.status_code}).",
                upstream_status=response.status_code,
                payload=_error_payload(response),
            )

        if response.is_error:
            logger.warning(
                "Jibble %s %s returned %s", method, strategy.path, response.status_code
            )
            raise UpstreamError(
                f"Jibble {method} {strategy.path} returned {response.status_code}.",
                upstream_status=response.status_code,
                payload=_error_payload(response),
            )

        if response.status_code == status.HTTP_204_NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Jibble {method} {strategy.path} returned malformed JSON.",
                upstream_status=response.status_code,
            ) from exc

    async def call(self, strategies: Sequence[RequestStrategy]) -> Any:
        """Try ``strategies`` in order and return the first successful body."""
        strategy, payload = await first_successful(strategies, self.send)
        logger.debug("Jibble call served by %s", strategy.describe())
        return payload

    async def list_people(self) -> List[Dict[str, Any]]:
        return extract_list(await self.call(PEOPLE_STRATEGIES))

    async def list_projects(self) -> List[Dict[str, Any]]:
        return extract_list(await self.call(PROJECT_STRATEGIES))

    async def list_time_entries(
        self,
        person_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TimeEntry]:
        """List a person's time entries, optionally bounded by start time."""
        odata_filter = [f"personId eq {person_id}"]
        legacy_params: Dict[str, Any] = {"personId": person_id}
        if start is not None:
            odata_filter.append(f"startTime ge {_iso(start)}")
            legacy_params["from"] = _iso(start)
        if end is not None:
            odata_filter.append(f"startTime lt {_iso(end)}")
            legacy_params["to"] = _iso(end)

        strategies = (
            RequestStrategy(
                "GET", "/v1/TimeEntries", params={"$filter": " and ".join(odata_filter)}
            ),
            RequestStrategy("GET", "/api/v1/timeentries", params=legacy_params),
        )
        raw_entries = extract_list(await self.call(strategies))
        try:
            return [TimeEntry.model_validate(item) for item in raw_entries]
        except PydanticValidationError as exc:
            raise UpstreamError(
                "Jibble returned malformed time entries.", payload=str(exc)
            ) from exc

    async def clock_in(
        self,
        person_id: str,
        *,
        project_id: Optional[str] = None,
        activity_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Any:
        strategies = (
            RequestStrategy(
                "POST",
                "/v1/TimeEntries",
                json=_drop_none(
                    {
                        "personId": person_id,
                        "type": "In",
                        "clientType": "Web",
                        "projectId": project_id,
                        "activityId": activity_id,
                        "note": note,
                    }
                ),
            ),
            RequestStrategy(
                "POST",
                "/api/v1/clockins",
                json={
                    "person": {"id": person_id},
                    "project": {"id": project_id} if project_id else None,
                    "activity": {"id": activity_id} if activity_id else None,
                    "note": note or "",
                },
            ),
        )
        return await self.call(strategies)

    async def clock_out(
        self, person_id: str, *, note: Optional[str] = None, at: datetime
    ) -> Any:
        note = note or "Clocked out via Cliq Bot"
        legacy_body = {"person": {"id": person_id}, "note": note}
        strategies = (
            RequestStrategy(
                "POST",
                "/v1/TimeEntries",
                json={
                    "personId": person_id,
                    "type": "Out",
                    "clientType": "Web",
                    "note": note,
                },
            ),
            RequestStrategy("POST", "/api/v1/clockouts", json=legacy_body),
            RequestStrategy(
                "POST", "/api/v1/timeentries", json={**legacy_body, "end": _iso(at)}
            ),
        )
        return await self.call(strategies)

    async def probe(self, path: str) -> Dict[str, Any]:
        """Report whether a single GET endpoint answers successfully."""
        try:
            await self.send(RequestStrategy("GET", path))
        except UpstreamError as exc:
            return {
                "endpoint": path,
                "ok": False,
                "status": exc.upstream_status,
                "error": exc.message,
            }
        return {"endpoint": path, "ok": True, "status": status.HTTP_200_OK}


__all__ = [
    "DISCOVERY_PATHS",
    "JibbleClient",
    "PEOPLE_STRATEGIES",
    "PROJECT_STRATEGIES",
    "TokenProvider",
    "extract_list",
]
