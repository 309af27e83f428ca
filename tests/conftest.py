"""Pytest configuration and fakes shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone

import pytest

from app.clients.json_store import JsonStore
from app.core.errors import UpstreamError


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeJibble:
    """In-memory stand-in for ``JibbleClient``."""

    def __init__(self) -> None:
        self.people: list[dict] = []
        self.projects: list[dict] = []
        self.entries: list = []
        self.fail_with: UpstreamError | None = None
        self.clock_ins: list[dict] = []
        self.clock_outs: list[dict] = []

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def list_people(self) -> list[dict]:
        self._maybe_fail()
        return list(self.people)

    async def list_projects(self) -> list[dict]:
        self._maybe_fail()
        return list(self.projects)

    async def list_time_entries(self, person_id, *, start=None, end=None):
        self._maybe_fail()
        return list(self.entries)

    async def clock_in(self, person_id, *, project_id=None, activity_id=None, note=None):
        self._maybe_fail()
        self.clock_ins.append(
            {"person_id": person_id, "project_id": project_id, "note": note}
        )
        return {"id": f"in-{len(self.clock_ins)}"}

    async def clock_out(self, person_id, *, note=None, at):
        self._maybe_fail()
        self.clock_outs.append({"person_id": person_id, "note": note, "at": at})
        return {"id": f"out-{len(self.clock_outs)}"}


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(tmp_path) -> JsonStore:
    return JsonStore(str(tmp_path / "db.json"))


@pytest.fixture
def fake_jibble() -> FakeJibble:
    return FakeJibble()
