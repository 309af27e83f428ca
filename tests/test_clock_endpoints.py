try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import timedelta

import httpx
import pytest

from app.core.errors import AuthError
from app.main import app
from app.schemas import TimeEntry
from app.services.audit_log import AuditLogService
from app.services.registrations import RegistrationService
from app.services.session_resolver import SessionResolver
from app.services.time_tracking import TimeTrackingService

pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture()
async def overrides(store, fake_jibble, clock):
    from app import dependencies

    audit_log = AuditLogService(store, clock=clock)
    registrations = RegistrationService(store, audit_log, clock=clock)
    await registrations.register(
        cliq_user_id="cliq-1", cliq_user_name="Ada", jibble_person_id="person-1"
    )
    await registrations.register(cliq_user_id="cliq-2", jibble_email="b@example.com")
    tracking = TimeTrackingService(
        resolver=SessionResolver(registrations, fake_jibble),
        jibble=fake_jibble,
        audit_log=audit_log,
        clock=clock,
    )

    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_time_tracking_service: lambda: tracking,
        }
    )

    yield store, fake_jibble, clock

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


async def test_clockin_then_status_then_clockout(overrides, client):
    store, fake_jibble, clock = overrides

    response = await client.post(
        "/api/clockin", json={"cliq_user_id": "cliq-1", "note": "morning"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Clocked in successfully"

    fake_jibble.entries = [TimeEntry(id="e1", start=clock.now)]
    clock.advance(hours=2, minutes=30)

    status = await client.get("/api/clock/status/cliq-1")
    assert status.json()["status"] == "clocked_in"
    assert status.json()["duration_hours"] == 2.5

    response = await client.post("/api/clockout", json={"cliq_user_id": "cliq-1"})
    assert response.status_code == 200
    assert response.json()["duration_hours"] == 2.5
    assert len(fake_jibble.clock_outs) == 1

    types = [log["type"] for log in store.list_items("logs")]
    assert types[-2:] == ["clockin", "clockout"]


async def test_clockout_without_session_is_conflict(overrides, client):
    _, fake_jibble, clock = overrides
    fake_jibble.entries = [
        TimeEntry(id="done", start=clock.now - timedelta(hours=8), end=clock.now)
    ]

    response = await client.post("/api/clockout", json={"cliq_user_id": "cliq-1"})

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert fake_jibble.clock_outs == []


async def test_clockin_unregistered_user(overrides, client):
    response = await client.post("/api/clockin", json={"cliq_user_id": "ghost"})

    assert response.status_code == 400
    assert "not registered" in response.json()["error"]


async def test_clockin_user_without_person_id(overrides, client):
    response = await client.post("/api/clockin", json={"cliq_user_id": "cliq-2"})

    assert response.status_code == 400
    assert response.json()["error"] == "Jibble person ID not found for this user"


async def test_clockin_auth_failure_is_server_error(overrides, client):
    store, fake_jibble, _ = overrides
    fake_jibble.fail_with = AuthError("Token request rejected with status 401.")

    response = await client.post("/api/clockin", json={"cliq_user_id": "cliq-1"})

    assert response.status_code == 500
    assert response.json()["error"] == "Token request rejected with status 401."
    assert store.list_items("logs")[-1]["type"] == "clockin_error"


async def test_timesheet_today(overrides, client):
    _, fake_jibble, clock = overrides
    fake_jibble.entries = [
        TimeEntry(id="e1", start=clock.now - timedelta(hours=3), end=clock.now - timedelta(hours=1)),
    ]

    response = await client.get("/api/timesheet/today/cliq-1")

    body = response.json()
    assert body["total_hours"] == "2.00"
    assert body["entry_count"] == 1


async def test_unprefixed_paths_remain_available(overrides, client):
    _, fake_jibble, _ = overrides

    response = await client.post("/clockin", json={"cliq_user_id": "cliq-1"})
    status = await client.get("/clock/status/cliq-1")

    assert response.status_code == 200
    assert len(fake_jibble.clock_ins) == 1
    assert status.json()["status"] == "clocked_out"
