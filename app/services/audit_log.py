"""Append-only audit log kept alongside the registrations."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.clients.json_store import JsonStore
from app.models.records import LogRecord, LogType

logger = logging.getLogger(__name__)


class AuditLogService:
    """Record what the relay did on behalf of each Cliq user."""

    def __init__(
        self,
        store: JsonStore,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._clock = clock

    def append(
        self,
        log_type: LogType,
        cliq_user_id: str,
        details: str,
        *,
        upstream_response: Any = None,
    ) -> LogRecord:
        record = LogRecord(
            type=log_type,
            cliq_user_id=cliq_user_id,
            details=details,
            timestamp=self._clock(),
            upstream_response=upstream_response,
        )
        self._store.append_item(
            "logs", record.model_dump(mode="json", exclude_none=True)
        )
        logger.debug("Audit %s for %s: %s", log_type.value, cliq_user_id, details)
        return record

    def recent(self, limit: int = 100) -> Tuple[List[Dict[str, Any]], int]:
        """Return up to ``limit`` records, newest first, and the total count."""
        logs = self._store.list_items("logs")
        if limit <= 0:
            return [], len(logs)
        return list(reversed(logs[-limit:])), len(logs)

    def stats(self, today: Optional[date] = None) -> Dict[str, int]:
        data = self._store.read()
        day_prefix = (today or self._clock().astimezone(timezone.utc).date()).isoformat()
        todays = [
            log
            for log in data["logs"]
            if str(log.get("timestamp", "")).startswith(day_prefix)
        ]
        todays_types = [str(log.get("type", "")) for log in todays]
        return {
            "total_registrations": len(data["registrations"]),
            "total_logs": len(data["logs"]),
            "today_clockins": todays_types.count(LogType.CLOCKIN.value),
            "today_clockouts": todays_types.count(LogType.CLOCKOUT.value),
            "today_errors": sum("error" in log_type for log_type in todays_types),
        }


__all__ = ["AuditLogService"]
