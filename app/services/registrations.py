"""
Registration of Cliq users against Jibble people.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Protocol

from app.clients.json_store import JsonStore
from app.core.errors import (
    AuthError,
    NotRegisteredError,
    UpstreamError,
    ValidationError,
)
from app.models.records import LogType, Registration
from app.services.audit_log import AuditLogService

logger = logging.getLogger(__name__)


class PeopleDirectory(Protocol):
    async def list_people(self) -> List[Dict[str, Any]]:
        ...


def _person_email(person: Dict[str, Any]) -> Optional[str]:
    for key in ("email", "Email", "emailAddress"):
        value = person.get(key)
        if isinstance(value, str) and value:
            return value
    user = person.get("user")
    if isinstance(user, dict):
        return _person_email(user)
    return None


class RegistrationService:
    """Create, look up and remove registrations in the JSON store."""

    def __init__(
        self,
        store: JsonStore,
        audit_log: AuditLogService,
        *,
        people: Optional[PeopleDirectory] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._audit = audit_log
        self._people = people
        self._clock = clock

    def find(self, cliq_user_id: str) -> Optional[Registration]:
        for item in self._store.list_items("registrations"):
            if item.get("cliq_user_id") == cliq_user_id:
                return Registration.model_validate(item)
        return None

    def get(self, cliq_user_id: str) -> Registration:
        registration = self.find(cliq_user_id)
        if registration is None:
            raise NotRegisteredError(
                "User not registered", status_code=HTTPStatus.NOT_FOUND
            )
        return registration

    def list(self) -> List[Registration]:
        return [
            Registration.model_validate(item)
            for item in self._store.list_items("registrations")
        ]

    async def _lookup_person_id(self, email: str) -> Optional[str]:
        if self._people is None:
            return None
        try:
            people = await self._people.list_people()
        except (AuthError, UpstreamError) as exc:
            logger.warning("Could not look up Jibble person for %s: %s", email, exc.message)
            return None

        wanted = email.strip().lower()
        for person in people:
            if not isinstance(person, dict):
                continue
            candidate = _person_email(person)
            if candidate and candidate.strip().lower() == wanted and person.get("id"):
                return str(person["id"])
        logger.info("No Jibble person matches %s", email)
        return None

    async def register(
        self,
        *,
        cliq_user_id: Optional[str],
        cliq_user_name: Optional[str] = None,
        jibble_person_id: Optional[str] = None,
        jibble_email: Optional[str] = None,
    ) -> Registration:
        """Register a Cliq user.

        Raises ``ValidationError`` when required fields are missing or the
        user is already registered.
        """
        if not cliq_user_id or (not jibble_person_id and not jibble_email):
            raise ValidationError(
                "cliq_user_id and either jibble_person_id or jibble_email are required"
            )
        if self.find(cliq_user_id) is not None:
            raise ValidationError("User already registered")

        if not jibble_person_id and jibble_email:
            jibble_person_id = await self._lookup_person_id(jibble_email)

        now = self._clock()
        registration = Registration(
            cliq_user_id=cliq_user_id,
            cliq_user_name=cliq_user_name or "Unknown",
            jibble_person_id=jibble_person_id or None,
            jibble_email=jibble_email or None,
            created_at=now,
            updated_at=now,
        )

        def _insert(data: Dict[str, Any]) -> bool:
            # The lookup above awaited; re-check inside the write.
            if any(
                item.get("cliq_user_id") == cliq_user_id
                for item in data["registrations"]
            ):
                return False
            data["registrations"].append(registration.model_dump(mode="json"))
            return True

        if not self._store.update(_insert):
            raise ValidationError("User already registered")

        self._audit.append(
            LogType.REGISTRATION, cliq_user_id, "User registered with Jibble"
        )
        logger.info("Registered Cliq user %s", cliq_user_id)
        return registration

    def unregister(self, cliq_user_id: str) -> Registration:
        registration = self.get(cliq_user_id)

        def _remove(data: Dict[str, Any]) -> None:
            data["registrations"] = [
                item
                for item in data["registrations"]
                if item.get("cliq_user_id") != cliq_user_id
            ]

        self._store.update(_remove)
        self._audit.append(
            LogType.UNREGISTRATION, cliq_user_id, "User registration removed"
        )
        logger.info("Unregistered Cliq user %s", cliq_user_id)
        return registration


__all__ = ["PeopleDirectory", "RegistrationService"]
