"""Goal workflow endpoints.

Routes are thin: resolve identity, translate the body into an engine call,
wrap the result in the response envelope. Workflow errors propagate to the
exception handlers registered in :mod:`performance_track.server.app`.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from performance_track.server.identity import CurrentActor
from performance_track.server.models import (
    ApiResponse,
    ApproveCompletionRequest,
    CreateGoalRequest,
    GoalContentRequest,
    ProgressRequest,
    ProgressView,
    ReasonRequest,
    RequestChangesRequest,
    SubmitCompletionRequest,
    VerifyEvidenceRequest,
    success,
)
from performance_track.services import Services
from performance_track.workflow.actions import CreateGoal
from performance_track.workflow.engine import GoalWorkflowEngine
from performance_track.workflow.models import Goal
from performance_track.workflow.progress import render_progress_text

router = APIRouter(prefix="/goals", tags=["goals"])


def _engine(request: Request) -> GoalWorkflowEngine:
    services = getattr(request.app.state, "services", None)
    if not isinstance(services, Services):
        raise HTTPException(status_code=500, detail="Workflow services not configured")
    return services.engine


def _goal_data(goal: Goal) -> dict[str, Any]:
    return goal.model_dump(mode="json")


@router.post("", response_model=ApiResponse, status_code=201)
def create_goal(req: CreateGoalRequest, actor: CurrentActor, request: Request) -> ApiResponse:
    goal = _engine(request).create_goal(
        actor,
        CreateGoal(content=req.to_content(), manager_id=req.managerId, cycle_id=req.cycleId),
    )
    return success("Goal created", _goal_data(goal))


@router.get("", response_model=ApiResponse)
def list_goals(
    actor: CurrentActor,
    request: Request,
    user_id: int | None = Query(default=None, alias="userId"),
    mgr_id: int | None = Query(default=None, alias="mgrId"),
) -> ApiResponse:
    goals = _engine(request).list_goals(actor, owner_id=user_id, manager_id=mgr_id)
    return success("Goals retrieved", [_goal_data(g) for g in goals])


@router.get("/{goal_id}", response_model=ApiResponse)
def get_goal(goal_id: int, actor: CurrentActor, request: Request) -> ApiResponse:
    return success("Goal retrieved", _goal_data(_engine(request).get_goal(actor, goal_id)))


@router.put("/{goal_id}/approve", response_model=ApiResponse)
def approve_goal(goal_id: int, actor: CurrentActor, request: Request) -> ApiResponse:
    return success("Goal approved", _goal_data(_engine(request).approve(actor, goal_id)))


@router.put("/{goal_id}/request-changes", response_model=ApiResponse)
def request_changes(
    goal_id: int,
    actor: CurrentActor,
    request: Request,
    body: RequestChangesRequest | None = None,
) -> ApiResponse:
    comments = body.comments if body else None
    goal = _engine(request).request_changes(actor, goal_id, comments)
    return success("Change request sent", _goal_data(goal))


@router.put("/{goal_id}", response_model=ApiResponse)
def update_goal(
    goal_id: int, req: GoalContentRequest, actor: CurrentActor, request: Request
) -> ApiResponse:
    goal = _engine(request).update_content(actor, goal_id, req.to_content())
    return success("Goal updated", _goal_data(goal))


@router.post("/{goal_id}/progress", response_model=ApiResponse)
def add_progress(
    goal_id: int, req: ProgressRequest, actor: CurrentActor, request: Request
) -> ApiResponse:
    _engine(request).add_progress(actor, goal_id, req.note)
    return success("Progress added")


@router.get("/{goal_id}/progress", response_model=ApiResponse)
def get_progress(goal_id: int, actor: CurrentActor, request: Request) -> ApiResponse:
    log = _engine(request).progress(actor, goal_id)
    view = ProgressView(
        goalId=goal_id,
        entries=[{"timestamp": e.timestamp.isoformat(), "note": e.note} for e in log],
        text=render_progress_text(log),
    )
    return success("Progress retrieved", view.model_dump())


@router.post("/{goal_id}/submit-completion", response_model=ApiResponse)
def submit_completion(
    goal_id: int, req: SubmitCompletionRequest, actor: CurrentActor, request: Request
) -> ApiResponse:
    goal = _engine(request).submit_completion(
        actor,
        goal_id,
        evidence_link=req.evidenceLink,
        link_description=req.linkDescription,
        access_instructions=req.accessInstructions,
        completion_notes=req.completionNotes,
    )
    return success("Completion submitted", _goal_data(goal))


@router.put("/{goal_id}/evidence/verify", response_model=ApiResponse)
def verify_evidence(
    goal_id: int, req: VerifyEvidenceRequest, actor: CurrentActor, request: Request
) -> ApiResponse:
    goal = _engine(request).verify_evidence(actor, goal_id, req.status, req.notes)
    return success("Evidence verified", _goal_data(goal))


@router.post("/{goal_id}/request-additional-evidence", response_model=ApiResponse)
def request_additional_evidence(
    goal_id: int,
    actor: CurrentActor,
    request: Request,
    body: ReasonRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body else None
    goal = _engine(request).request_additional_evidence(actor, goal_id, reason)
    return success("Additional evidence requested", _goal_data(goal))


@router.post("/{goal_id}/approve-completion", response_model=ApiResponse)
def approve_completion(
    goal_id: int,
    actor: CurrentActor,
    request: Request,
    body: ApproveCompletionRequest | None = None,
) -> ApiResponse:
    comments = body.managerComments if body else None
    goal = _engine(request).approve_completion(actor, goal_id, comments)
    return success("Completion approved", _goal_data(goal))


@router.post("/{goal_id}/reject-completion", response_model=ApiResponse)
def reject_completion(
    goal_id: int,
    actor: CurrentActor,
    request: Request,
    body: ReasonRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body else None
    goal = _engine(request).reject_completion(actor, goal_id, reason)
    return success("Goal completion rejected", _goal_data(goal))


@router.delete("/{goal_id}", response_model=ApiResponse)
def delete_goal(goal_id: int, actor: CurrentActor, request: Request) -> ApiResponse:
    _engine(request).delete_goal(actor, goal_id)
    return success("Goal deleted")
