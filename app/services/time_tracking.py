"""
Clock-in, clock-out, status and timesheet operations for registered users.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Protocol
from zoneinfo import ZoneInfo

from app.core.errors import NoActiveSessionError, RelayError
from app.models.records import LogType
from app.services.audit_log import AuditLogService
from app.services.session_resolver import SessionResolver, elapsed_hours

logger = logging.getLogger(__name__)


class ClockClient(Protocol):
    async def clock_in(
        self,
        person_id: str,
        *,
        project_id: Optional[str] = None,
        activity_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Any:
        ...

    async def clock_out(
        self, person_id: str, *, note: Optional[str] = None, at: datetime
    ) -> Any:
        ...


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


class TimeTrackingService:
    """Relay time-tracking actions to Jibble and keep the audit trail."""

    def __init__(
        self,
        *,
        resolver: SessionResolver,
        jibble: ClockClient,
        audit_log: AuditLogService,
        tz: str = "UTC",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._resolver = resolver
        self._jibble = jibble
        self._audit = audit_log
        self._tz = ZoneInfo(tz)
        self._clock = clock

    async def clock_in(
        self,
        cliq_user_id: str,
        *,
        project_id: Optional[str] = None,
        activity_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        _, person_id = self._resolver.resolve_person_id(cliq_user_id)
        logger.info("Clocking in %s (Jibble person %s)", cliq_user_id, person_id)

        try:
            result = await self._jibble.clock_in(
                person_id, project_id=project_id, activity_id=activity_id, note=note
            )
        except RelayError as exc:
            logger.error("Clock in failed for %s: %s", cliq_user_id, exc.message)
            self._audit.append(
                LogType.CLOCKIN_ERROR,
                cliq_user_id,
                f"Clock in failed: {exc.message}",
                upstream_response=getattr(exc, "payload", None),
            )
            raise

        now = self._clock()
        self._audit.append(
            LogType.CLOCKIN,
            cliq_user_id,
            f"Clocked in at {now.astimezone(self._tz).strftime('%H:%M:%S')}",
            upstream_response=result,
        )
        return {
            "success": True,
            "message": "Clocked in successfully",
            "data": result,
            "timestamp": _iso(now),
        }

    async def clock_out(
        self, cliq_user_id: str, *, note: Optional[str] = None
    ) -> Dict[str, Any]:
        """Close the user's open session.

        Raises ``NoActiveSessionError`` without calling Jibble's clock-out
        endpoint when no open entry exists.
        """
        _, person_id = self._resolver.resolve_person_id(cliq_user_id)
        logger.info("Clocking out %s (Jibble person %s)", cliq_user_id, person_id)

        try:
            entry = await self._resolver.find_open_entry(person_id)
            if entry is None:
                raise NoActiveSessionError("No active clock-in found for this user")
            now = self._clock()
            result = await self._jibble.clock_out(person_id, note=note, at=now)
        except RelayError as exc:
            logger.error("Clock out failed for %s: %s", cliq_user_id, exc.message)
            self._audit.append(
                LogType.CLOCKOUT_ERROR,
                cliq_user_id,
                f"Clock out failed: {exc.message}",
                upstream_response=getattr(exc, "payload", None),
            )
            raise

        hours = elapsed_hours(entry.start, now)
        self._audit.append(
            LogType.CLOCKOUT,
            cliq_user_id,
            f"Clocked out at {now.astimezone(self._tz).strftime('%H:%M:%S')} "
            f"after {hours:.2f} hours",
            upstream_response=result,
        )
        return {
            "success": True,
            "message": f"Clocked out successfully. Worked {hours:.2f} hours.",
            "duration_hours": hours,
            "clocked_in_at": _iso(entry.start),
            "data": result,
            "timestamp": _iso(now),
        }

    async def status(self, cliq_user_id: str) -> Dict[str, Any]:
        registration, person_id = self._resolver.resolve_person_id(cliq_user_id)
        entries = await self._resolver.entries_for(person_id)
        open_entry = next((entry for entry in entries if entry.is_open), None)

        body: Dict[str, Any] = {
            "success": True,
            "user": registration.cliq_user_name,
            "registered": True,
        }
        if open_entry is not None:
            body.update(
                status="clocked_in",
                since=_iso(open_entry.start),
                duration_hours=elapsed_hours(open_entry.start, self._clock()),
            )
            return body

        closed = next((entry for entry in entries if not entry.is_open), None)
        body.update(
            status="clocked_out",
            last_clock_out=_iso(closed.end) if closed and closed.end else None,
        )
        return body

    async def timesheet_today(self, cliq_user_id: str) -> Dict[str, Any]:
        _, person_id = self._resolver.resolve_person_id(cliq_user_id)
        now = self._clock()
        today = now.astimezone(self._tz).date()
        day_start = datetime.combine(today, time.min, tzinfo=self._tz)
        day_end = day_start + timedelta(days=1)

        entries = await self._resolver.entries_for(
            person_id, start=day_start, end=day_end
        )
        # Upstream filtering is best-effort; keep only today's entries.
        entries = [entry for entry in entries if day_start <= entry.start < day_end]
        entries.reverse()

        total_seconds = sum(
            ((entry.end or now) - entry.start).total_seconds() for entry in entries
        )
        return {
            "success": True,
            "date": today.isoformat(),
            "total_hours": f"{total_seconds / 3600:.2f}",
            "entries": [
                {
                    "id": entry.id,
                    "start": _iso(entry.start),
                    "end": _iso(entry.end) if entry.end else None,
                    "hours": elapsed_hours(entry.start, entry.end or now),
                    "open": entry.is_open,
                }
                for entry in entries
            ],
            "entry_count": len(entries),
        }


__all__ = ["ClockClient", "TimeTrackingService"]
