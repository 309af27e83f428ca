try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from app.core.errors import AuthError, UpstreamError
from app.main import app
from app.models.records import LogType
from app.services.audit_log import AuditLogService
from app.services.directory import DirectoryService

pytestmark = pytest.mark.anyio("asyncio")


class ProbingJibble:
    def __init__(self) -> None:
        self.people_error: Exception | None = None
        self.probe_error: Exception | None = None
        self.probed: list[str] = []

    async def list_people(self):
        if self.people_error is not None:
            raise self.people_error
        return [{"id": "p1"}]

    async def probe(self, path: str) -> dict:
        if self.probe_error is not None:
            raise self.probe_error
        self.probed.append(path)
        return {"endpoint": path, "ok": path.startswith("/v1"), "status": 200}


@pytest.fixture()
def overrides(store, fake_jibble, clock):
    from app import dependencies

    audit_log = AuditLogService(store, clock=clock)
    directory = DirectoryService(jibble=fake_jibble, store=store)
    probing = ProbingJibble()

    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_audit_log_service: lambda: audit_log,
            dependencies.get_directory_service: lambda: directory,
            dependencies.get_jibble_client: lambda: probing,
        }
    )

    yield audit_log, fake_jibble, probing, clock

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


async def test_logs_are_newest_first_and_limited(overrides, client):
    audit_log, *_ = overrides
    for index in range(5):
        audit_log.append(LogType.CLOCKIN, f"user-{index}", "Clocked in")

    response = await client.get("/api/admin/logs", params={"limit": 2})

    body = response.json()
    assert body["total"] == 5
    assert [log["cliq_user_id"] for log in body["logs"]] == ["user-4", "user-3"]


async def test_stats_count_only_today(overrides, client):
    audit_log, _, _, clock = overrides
    audit_log.append(LogType.CLOCKIN, "u1", "Clocked in")
    audit_log.append(LogType.CLOCKOUT, "u1", "Clocked out")
    audit_log.append(LogType.CLOCKOUT_ERROR, "u2", "Clock out failed")
    audit_log.append(LogType.CLOCKIN_ERROR, "u2", "Clock in failed")
    clock.advance(days=-1)
    audit_log.append(LogType.CLOCKIN, "u3", "Clocked in yesterday")
    clock.advance(days=1)

    stats = audit_log.stats()

    assert stats == {
        "total_registrations": 0,
        "total_logs": 5,
        "today_clockins": 1,
        "today_clockouts": 1,
        "today_errors": 2,
    }
    response = await client.get("/api/admin/stats")
    assert response.json()["success"] is True


async def test_projects_refresh_cache_then_serve_it(overrides, client, store):
    _, fake_jibble, _, _ = overrides
    fake_jibble.projects = [{"id": "proj-1", "name": "Apollo"}]

    fresh = await client.get("/api/projects")
    assert fresh.json()["source"] == "jibble"
    assert store.list_items("projects") == [{"id": "proj-1", "name": "Apollo"}]

    fake_jibble.fail_with = UpstreamError("Jibble down")
    cached = await client.get("/api/projects")

    body = cached.json()
    assert cached.status_code == 200
    assert body["source"] == "cache"
    assert body["projects"] == [{"id": "proj-1", "name": "Apollo"}]
    assert "Jibble down" in body["note"]


async def test_team_members_without_cache_is_empty(overrides, client):
    _, fake_jibble, _, _ = overrides
    fake_jibble.fail_with = AuthError("bad credentials")

    response = await client.get("/api/team/members")

    assert response.json()["members"] == []
    assert response.json()["count"] == 0


async def test_health_and_info(client):
    health = await client.get("/api/health")
    info = await client.get("/api/info")

    assert health.json()["status"] == "healthy"
    assert "/api/clockout" in info.json()["endpoints"]


async def test_status_reports_disconnected(overrides, client):
    _, _, probing, _ = overrides
    probing.people_error = UpstreamError("Jibble returned 500")

    response = await client.get("/api/status")

    assert response.json()["jibble_api"] == "disconnected"
    assert response.json()["server"] == "running"


async def test_status_reports_connected(client):
    response = await client.get("/api/status")

    assert response.json()["jibble_api"] == "connected"


async def test_discover_probes_each_path(overrides, client):
    _, _, probing, _ = overrides

    response = await client.get("/api/discover")

    body = response.json()
    assert body["success"] is True
    assert probing.probed[0] == "/v1/People"
    assert len(body["results"]) == len(probing.probed)


async def test_discover_stops_on_auth_error(overrides, client):
    _, _, probing, _ = overrides
    probing.probe_error = AuthError("no token")

    response = await client.get("/api/discover")

    assert response.json()["success"] is False
    assert response.json()["error"] == "no token"


async def test_unknown_path_returns_json_404(client):
    response = await client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "Endpoint not found"


async def test_old_logs_excluded_from_today_prefix(overrides):
    audit_log, _, _, clock = overrides
    clock.advance(days=-2)
    audit_log.append(LogType.CLOCKIN, "u1", "old")
    clock.advance(days=2, hours=1)

    assert audit_log.stats()["today_clockins"] == 0
    assert audit_log.recent(limit=0) == ([], 1)


async def test_corrupt_store_returns_json_server_error(overrides, store):
    from app import dependencies
    from app.services.registrations import RegistrationService

    audit_log, *_ = overrides
    app.dependency_overrides[dependencies.get_registration_service] = (
        lambda: RegistrationService(store, audit_log)
    )
    store.path.write_text("{not json", encoding="utf-8")

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://testserver",
    ) as test_client:
        response = await test_client.get("/api/registrations")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Internal server error"
    assert body["message"]
