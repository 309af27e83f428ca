"""
Resolve a Cliq user to a Jibble person and find their open session.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Tuple

from app.core.errors import NotRegisteredError
from app.models.records import Registration
from app.schemas.jibble import TimeEntry
from app.services.registrations import RegistrationService


class TimeEntrySource(Protocol):
    async def list_time_entries(
        self,
        person_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TimeEntry]:
        ...


def newest_first(entries: Sequence[TimeEntry]) -> List[TimeEntry]:
    """Order entries by start time, most recent first.

    Jibble does not promise any ordering, so selection never relies on the
    order entries arrive in.
    """
    return sorted(entries, key=lambda entry: entry.start, reverse=True)


def elapsed_hours(start: datetime, now: datetime) -> float:
    """Wall-clock hours between ``start`` and ``now``, rounded to 2 places."""
    return round((now - start).total_seconds() / 3600, 2)


class SessionResolver:
    def __init__(
        self, registrations: RegistrationService, entries: TimeEntrySource
    ) -> None:
        self._registrations = registrations
        self._entries = entries

    def resolve_person_id(self, cliq_user_id: str) -> Tuple[Registration, str]:
        """Return the registration and its linked Jibble person id.

        Raises ``NotRegisteredError`` when either is missing.
        """
        registration = self._registrations.find(cliq_user_id)
        if registration is None:
            raise NotRegisteredError(
                "User not registered with Jibble. Please register first using /register"
            )
        if not registration.jibble_person_id:
            raise NotRegisteredError("Jibble person ID not found for this user")
        return registration, registration.jibble_person_id

    async def entries_for(
        self,
        person_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TimeEntry]:
        """Newest-first time entries for ``person_id``."""
        return newest_first(
            await self._entries.list_time_entries(person_id, start=start, end=end)
        )

    async def find_open_entry(
        self,
        person_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[TimeEntry]:
        """Return the most recently started entry without an end, if any.

        Listing failures propagate as ``UpstreamError``.
        """
        entries = await self.entries_for(person_id, start=start, end=end)
        return next((entry for entry in entries if entry.is_open), None)

    async def latest_closed_entry(self, person_id: str) -> Optional[TimeEntry]:
        entries = await self.entries_for(person_id)
        return next((entry for entry in entries if not entry.is_open), None)


__all__ = [
    "SessionResolver",
    "TimeEntrySource",
    "elapsed_hours",
    "newest_first",
]
