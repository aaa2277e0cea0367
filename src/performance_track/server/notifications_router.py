"""Notification inbox and audit log endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, Request

from performance_track.server.identity import CurrentActor
from performance_track.server.models import ApiResponse, success
from performance_track.services import Services
from performance_track.store.notification_store import NotificationStatus
from performance_track.workflow.models import UserRole

router = APIRouter(tags=["notifications"])


def _services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if not isinstance(services, Services):
        raise HTTPException(status_code=500, detail="Workflow services not configured")
    return services


@router.get("/notifications", response_model=ApiResponse)
def list_notifications(
    actor: CurrentActor,
    request: Request,
    status: NotificationStatus | None = Query(default=None),
) -> ApiResponse:
    records = _services(request).notifications.list_for_user(actor.user_id, status=status)
    return success(
        "Notifications retrieved", [r.model_dump(mode="json") for r in records]
    )


# Declared before the parameterised route so "mark-all-read" is not taken as an id.
@router.put("/notifications/mark-all-read", response_model=ApiResponse)
def mark_all_read(actor: CurrentActor, request: Request) -> ApiResponse:
    count = _services(request).notifications.mark_all_read(actor.user_id)
    return success("Notifications marked as read", {"updated": count})


@router.put("/notifications/{notification_id}", response_model=ApiResponse)
def mark_read(notification_id: int, actor: CurrentActor, request: Request) -> ApiResponse:
    store = _services(request).notifications
    record = store.get(notification_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    if record.user_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Notification belongs to another user")
    updated = store.mark_read(notification_id)
    return success("Notification marked as read", updated.model_dump(mode="json"))


@router.get("/audit-logs", response_model=ApiResponse, tags=["audit"])
def list_audit_logs(
    actor: CurrentActor,
    request: Request,
    user_id: int | None = Query(default=None, alias="userId"),
    action: str | None = Query(default=None),
    start_dt: datetime | None = Query(default=None, alias="startDt"),
    end_dt: datetime | None = Query(default=None, alias="endDt"),
    goal_id: int | None = Query(default=None, alias="goalId"),
) -> ApiResponse:
    if actor.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Audit logs are restricted to admins")
    records = _services(request).audit.query(
        actor_id=user_id,
        action=action,
        start=start_dt,
        end=end_dt,
        entity_id=goal_id,
    )
    return success("Audit logs retrieved", [r.model_dump(mode="json") for r in records])
