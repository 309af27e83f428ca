"""
FastAPI routes consumed by the Cliq bot.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from app.clients.jibble import DISCOVERY_PATHS
from app.core.errors import AuthError, UpstreamError
from app.dependencies import (
    get_audit_log_service,
    get_directory_service,
    get_jibble_client,
    get_jibble_settings,
    get_registration_service,
    get_time_tracking_service,
)
from app.schemas import ClockInRequest, ClockOutRequest, RegistrationRequest

router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_NAME = "Jibble Cliq Bot Server"
SERVICE_VERSION = "2.0.0"

ENDPOINTS = (
    "/health",
    "/status",
    "/info",
    "/discover",
    "/register",
    "/registrations",
    "/registration/{cliq_user_id}",
    "/jibble/people",
    "/clockin",
    "/clockout",
    "/clock/status/{cliq_user_id}",
    "/timesheet/today/{cliq_user_id}",
    "/projects",
    "/team/members",
    "/admin/logs",
    "/admin/stats",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------- Registration ----------


@router.post("/register", status_code=HTTPStatus.OK)
async def register_user(
    payload: RegistrationRequest,
    registrations: Annotated[Any, Depends(get_registration_service)],
) -> dict:
    """Link a Cliq user to a Jibble person."""
    registration = await registrations.register(
        cliq_user_id=payload.cliq_user_id,
        cliq_user_name=payload.cliq_user_name,
        jibble_person_id=payload.jibble_person_id,
        jibble_email=payload.jibble_email,
    )
    return {
        "success": True,
        "message": "User registered successfully",
        "registration": registration.model_dump(mode="json"),
    }


@router.get("/registrations", status_code=HTTPStatus.OK)
async def list_registrations(
    registrations: Annotated[Any, Depends(get_registration_service)],
) -> dict:
    items = [item.model_dump(mode="json") for item in registrations.list()]
    return {"success": True, "registrations": items, "count": len(items)}


@router.get("/registration/{cliq_user_id}", status_code=HTTPStatus.OK)
async def get_registration(
    cliq_user_id: str,
    registrations: Annotated[Any, Depends(get_registration_service)],
) -> dict:
    registration = registrations.get(cliq_user_id)
    return {"success": True, "registration": registration.model_dump(mode="json")}


@router.delete("/registration/{cliq_user_id}", status_code=HTTPStatus.OK)
async def delete_registration(
    cliq_user_id: str,
    registrations: Annotated[Any, Depends(get_registration_service)],
) -> dict:
    registration = registrations.unregister(cliq_user_id)
    return {
        "success": True,
        "message": "User unregistered successfully",
        "registration": registration.model_dump(mode="json"),
    }


@router.get("/jibble/people", status_code=HTTPStatus.OK)
async def list_jibble_people(
    jibble: Annotated[Any, Depends(get_jibble_client)],
) -> dict:
    """List Jibble people so users can find their person id when registering."""
    people = await jibble.list_people()
    return {"success": True, "people": people, "count": len(people)}


# ---------- Time tracking ----------


@router.post("/clockin", status_code=HTTPStatus.OK)
async def clock_in(
    payload: ClockInRequest,
    tracking: Annotated[Any, Depends(get_time_tracking_service)],
) -> dict:
    return await tracking.clock_in(
        payload.cliq_user_id,
        project_id=payload.project_id,
        activity_id=payload.activity_id,
        note=payload.note,
    )


@router.post("/clockout", status_code=HTTPStatus.OK)
async def clock_out(
    payload: ClockOutRequest,
    tracking: Annotated[Any, Depends(get_time_tracking_service)],
) -> dict:
    return await tracking.clock_out(payload.cliq_user_id, note=payload.note)


@router.get("/clock/status/{cliq_user_id}", status_code=HTTPStatus.OK)
async def clock_status(
    cliq_user_id: str,
    tracking: Annotated[Any, Depends(get_time_tracking_service)],
) -> dict:
    return await tracking.status(cliq_user_id)


@router.get("/timesheet/today/{cliq_user_id}", status_code=HTTPStatus.OK)
async def timesheet_today(
    cliq_user_id: str,
    tracking: Annotated[Any, Depends(get_time_tracking_service)],
) -> dict:
    return await tracking.timesheet_today(cliq_user_id)


# ---------- Projects & team ----------


@router.get("/projects", status_code=HTTPStatus.OK)
async def list_projects(
    directory: Annotated[Any, Depends(get_directory_service)],
) -> dict:
    result = await directory.projects()
    body = {
        "success": True,
        "projects": result["items"],
        "count": len(result["items"]),
        "source": result["source"],
    }
    if "note" in result:
        body["note"] = result["note"]
    return body


@router.get("/team/members", status_code=HTTPStatus.OK)
async def list_team_members(
    directory: Annotated[Any, Depends(get_directory_service)],
) -> dict:
    result = await directory.team_members()
    body = {
        "success": True,
        "members": result["items"],
        "count": len(result["items"]),
        "source": result["source"],
    }
    if "note" in result:
        body["note"] = result["note"]
    return body


# ---------- Admin ----------


@router.get("/admin/logs", status_code=HTTPStatus.OK)
async def admin_logs(
    audit_log: Annotated[Any, Depends(get_audit_log_service)],
    limit: int = Query(100, ge=0, description="Maximum number of records."),
) -> dict:
    logs, total = audit_log.recent(limit)
    return {"success": True, "logs": logs, "total": total}


@router.get("/admin/stats", status_code=HTTPStatus.OK)
async def admin_stats(
    audit_log: Annotated[Any, Depends(get_audit_log_service)],
) -> dict:
    return {"success": True, "stats": audit_log.stats()}


# ---------- Utility ----------


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": _now_iso(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@router.get("/status", status_code=HTTPStatus.OK)
async def upstream_status(
    jibble: Annotated[Any, Depends(get_jibble_client)],
) -> dict:
    """Report whether Jibble currently accepts our credentials."""
    body: dict[str, Any] = {"server": "running", "timestamp": _now_iso()}
    try:
        await jibble.list_people()
    except (AuthError, UpstreamError) as exc:
        logger.warning("Jibble status check failed: %s", exc.message)
        body.update(
            jibble_api="disconnected",
            error=exc.message,
            tip="Use /api/discover to test individual Jibble endpoints",
        )
        return body
    body["jibble_api"] = "connected"
    return body


@router.get("/info", status_code=HTTPStatus.OK)
async def service_info() -> dict:
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": [f"/api{path}" for path in ENDPOINTS],
    }


@router.get("/discover", status_code=HTTPStatus.OK)
async def discover_endpoints(
    jibble: Annotated[Any, Depends(get_jibble_client)],
    jibble_settings: Annotated[Any, Depends(get_jibble_settings)],
) -> dict:
    """Probe known Jibble endpoints and report which ones answer."""
    results = []
    for path in DISCOVERY_PATHS:
        try:
            results.append(await jibble.probe(path))
        except AuthError as exc:
            return {
                "success": False,
                "base_url": str(jibble_settings.api_base),
                "error": exc.message,
                "results": results,
            }
    return {
        "success": True,
        "base_url": str(jibble_settings.api_base),
        "client_id": f"{jibble_settings.client_id[:8]}...",
        "results": results,
    }


__all__ = ["router"]
