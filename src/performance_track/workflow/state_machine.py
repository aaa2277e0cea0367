"""Goal lifecycle state machine.

Transitions are pure: given the current goal and a command they return the
next goal plus the notifications and audit records the change should produce.
Nothing here touches a store or delivers an event; the engine does that after
the new goal is committed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .actions import (
    AddProgress,
    ApproveCompletion,
    ApproveGoal,
    CreateGoal,
    DeleteGoal,
    GoalAction,
    GoalCommand,
    RejectCompletion,
    RequestAdditionalEvidence,
    RequestChanges,
    SubmitCompletion,
    UpdateContent,
    VerifyEvidence,
)
from .errors import InvalidTransition, ValidationFailed
from .events import AuditRequest, NotificationRequest, NotificationType, OutboundEvent
from .evidence import can_resubmit, check_verification_outcome, completion_approval_blocker
from .models import (
    CompletionApprovalStatus,
    CompletionDecision,
    EvidenceVerificationStatus,
    FeedbackEntry,
    Goal,
    GoalContent,
    GoalPriority,
    GoalStatus,
    ProgressEntry,
)

ALLOWED_TRANSITIONS: dict[GoalStatus, set[GoalStatus]] = {
    GoalStatus.PENDING: {GoalStatus.IN_PROGRESS, GoalStatus.REJECTED},
    GoalStatus.IN_PROGRESS: {GoalStatus.PENDING_COMPLETION_APPROVAL, GoalStatus.REJECTED},
    GoalStatus.PENDING_COMPLETION_APPROVAL: {
        GoalStatus.COMPLETED,
        GoalStatus.IN_PROGRESS,
        GoalStatus.REJECTED,
    },
    GoalStatus.COMPLETED: set(),
    GoalStatus.REJECTED: set(),
}

_ACTIVE = frozenset(
    {GoalStatus.PENDING, GoalStatus.IN_PROGRESS, GoalStatus.PENDING_COMPLETION_APPROVAL}
)

ACTION_SOURCES: dict[GoalAction, frozenset[GoalStatus]] = {
    GoalAction.APPROVE: frozenset({GoalStatus.PENDING}),
    GoalAction.REQUEST_CHANGES: frozenset({GoalStatus.PENDING}),
    GoalAction.UPDATE_CONTENT: frozenset({GoalStatus.PENDING}),
    GoalAction.ADD_PROGRESS: frozenset({GoalStatus.IN_PROGRESS}),
    # PENDING_COMPLETION_APPROVAL only when the manager asked for more evidence.
    GoalAction.SUBMIT_COMPLETION: frozenset(
        {GoalStatus.IN_PROGRESS, GoalStatus.PENDING_COMPLETION_APPROVAL}
    ),
    GoalAction.VERIFY_EVIDENCE: frozenset({GoalStatus.PENDING_COMPLETION_APPROVAL}),
    GoalAction.REQUEST_ADDITIONAL_EVIDENCE: frozenset({GoalStatus.PENDING_COMPLETION_APPROVAL}),
    GoalAction.APPROVE_COMPLETION: frozenset({GoalStatus.PENDING_COMPLETION_APPROVAL}),
    GoalAction.REJECT_COMPLETION: frozenset({GoalStatus.PENDING_COMPLETION_APPROVAL}),
    GoalAction.DELETE: _ACTIVE,
}


@dataclass(frozen=True, slots=True)
class TransitionResult:
    goal: Goal
    events: tuple[OutboundEvent, ...]


def check_status_change(current: GoalStatus, to: GoalStatus) -> None:
    if current == to:
        return
    if to not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Illegal transition: {current.value} -> {to.value}")


def validate_content(content: GoalContent) -> None:
    if not content.title.strip():
        raise ValidationFailed("Title is required")
    if not content.description.strip():
        raise ValidationFailed("Description is required")
    if content.end_date < content.start_date:
        raise ValidationFailed("End date must be after start date")


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _evolve(goal: Goal, now: datetime, **updates: Any) -> Goal:
    new_status = updates.get("status", goal.status)
    check_status_change(goal.status, new_status)
    stamps: dict[str, Any] = {"updated_date": now}
    if new_status != goal.status:
        stamps["status_changed_date"] = now
    return goal.model_copy(update={**updates, **stamps})


def _notify(
    goal: Goal,
    user_id: int,
    event_type: NotificationType,
    message: str,
    *,
    priority: str | None = None,
    action_required: bool = False,
) -> NotificationRequest:
    return NotificationRequest(
        user_id=user_id,
        event_type=event_type,
        message=message,
        entity_id=goal.goal_id,
        priority=priority,
        action_required=action_required,
    )


def _audit(goal: Goal, actor_id: int, action: str, details: str, now: datetime) -> AuditRequest:
    return AuditRequest(
        actor_id=actor_id,
        action=action,
        details=details,
        entity_id=goal.goal_id,
        timestamp=now,
    )


def create(*, goal_id: int, owner_id: int, command: CreateGoal, now: datetime) -> TransitionResult:
    """Build a new PENDING goal owned by ``owner_id``."""

    validate_content(command.content)
    if command.manager_id == owner_id:
        raise ValidationFailed("A goal must be assigned to a manager other than its owner")

    goal = Goal(
        goal_id=goal_id,
        owner_id=owner_id,
        manager_id=command.manager_id,
        cycle_id=command.cycle_id,
        **command.content.model_dump(),
        status=GoalStatus.PENDING,
        created_date=now,
        updated_date=now,
        status_changed_date=now,
    )
    events = (
        _notify(
            goal,
            goal.manager_id,
            NotificationType.GOAL_SUBMITTED,
            f"New goal submitted for your approval: {goal.title}",
            priority=goal.priority.value,
            action_required=True,
        ),
        _audit(goal, owner_id, "GOAL_CREATED", f"Created goal: {goal.title}", now),
    )
    return TransitionResult(goal=goal, events=events)


def _approve(goal: Goal, actor_id: int, _cmd: ApproveGoal, now: datetime) -> TransitionResult:
    updated = _evolve(
        goal,
        now,
        status=GoalStatus.IN_PROGRESS,
        approved_by=actor_id,
        approved_date=now,
        request_changes=False,
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.owner_id,
                NotificationType.GOAL_APPROVED,
                f"Your goal '{updated.title}' has been approved",
            ),
            _audit(updated, actor_id, "GOAL_APPROVED", f"Approved goal: {updated.title}", now),
        ),
    )


def _request_changes(
    goal: Goal, actor_id: int, cmd: RequestChanges, now: datetime
) -> TransitionResult:
    feedback = FeedbackEntry(given_by=actor_id, comments=cmd.comments, date=now)
    updated = _evolve(
        goal,
        now,
        request_changes=True,
        last_reviewed_by=actor_id,
        last_reviewed_date=now,
        feedback=[*goal.feedback, feedback],
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.owner_id,
                NotificationType.GOAL_CHANGE_REQUESTED,
                f"Changes requested for goal: {updated.title}",
                action_required=True,
            ),
            _audit(
                updated,
                actor_id,
                "GOAL_CHANGE_REQUESTED",
                f"Requested changes for goal: {updated.title}",
                now,
            ),
        ),
    )


def _update_content(
    goal: Goal, actor_id: int, cmd: UpdateContent, now: datetime
) -> TransitionResult:
    if not goal.request_changes:
        raise InvalidTransition("Goal is not in change request status", goal_id=goal.goal_id)
    validate_content(cmd.content)

    updated = _evolve(
        goal,
        now,
        **cmd.content.model_dump(),
        request_changes=False,
        resubmitted_date=now,
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.manager_id,
                NotificationType.GOAL_RESUBMITTED,
                f"Goal updated and resubmitted for approval: {updated.title}",
                action_required=True,
            ),
            _audit(
                updated,
                actor_id,
                "GOAL_UPDATED",
                f"Updated and resubmitted goal: {updated.title}",
                now,
            ),
        ),
    )


def _add_progress(goal: Goal, actor_id: int, cmd: AddProgress, now: datetime) -> TransitionResult:
    if _blank(cmd.note):
        raise ValidationFailed("Progress note is required", goal_id=goal.goal_id)
    note = cmd.note or ""

    entry = ProgressEntry(timestamp=now, note=note)
    updated = _evolve(goal, now, progress_log=[*goal.progress_log, entry])
    return TransitionResult(
        goal=updated,
        events=(
            _audit(
                updated,
                actor_id,
                "PROGRESS_ADDED",
                f"Added progress update for goal: {updated.title}",
                now,
            ),
        ),
    )


def _submit_completion(
    goal: Goal, actor_id: int, cmd: SubmitCompletion, now: datetime
) -> TransitionResult:
    resubmission = goal.status == GoalStatus.PENDING_COMPLETION_APPROVAL
    if resubmission and not can_resubmit(goal):
        raise InvalidTransition(
            "Completion is already awaiting review; evidence can only be resubmitted "
            "when the manager requests it",
            goal_id=goal.goal_id,
        )
    if _blank(cmd.evidence_link):
        raise ValidationFailed("Evidence link is required", goal_id=goal.goal_id)
    if _blank(cmd.link_description):
        raise ValidationFailed("Link description is required", goal_id=goal.goal_id)

    updated = _evolve(
        goal,
        now,
        status=GoalStatus.PENDING_COMPLETION_APPROVAL,
        evidence_link=cmd.evidence_link,
        evidence_link_description=cmd.link_description,
        evidence_access_instructions=cmd.access_instructions,
        completion_notes=cmd.completion_notes,
        completion_submitted_date=now,
        completion_approval_status=CompletionApprovalStatus.PENDING,
        evidence_verification_status=EvidenceVerificationStatus.PENDING,
        evidence_verification_notes=None,
        evidence_verified_by=None,
        evidence_verified_date=None,
    )
    if resubmission:
        message = f"Additional evidence submitted for goal: {updated.title}"
    else:
        message = f"Completion submitted for goal: {updated.title}"
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.manager_id,
                NotificationType.GOAL_COMPLETION_SUBMITTED,
                message,
                priority=GoalPriority.HIGH.value,
                action_required=True,
            ),
            _audit(
                updated,
                actor_id,
                "GOAL_COMPLETION_SUBMITTED",
                f"Submitted completion for goal: {updated.title}",
                now,
            ),
        ),
    )


def _verify_evidence(
    goal: Goal, actor_id: int, cmd: VerifyEvidence, now: datetime
) -> TransitionResult:
    check_verification_outcome(cmd.status)

    updated = _evolve(
        goal,
        now,
        evidence_verification_status=cmd.status,
        evidence_verification_notes=cmd.notes,
        evidence_verified_by=actor_id,
        evidence_verified_date=now,
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.owner_id,
                NotificationType.EVIDENCE_VERIFIED,
                f"Evidence for goal '{updated.title}' was reviewed: {cmd.status.value}",
                action_required=cmd.status != EvidenceVerificationStatus.VERIFIED,
            ),
            _audit(
                updated,
                actor_id,
                "EVIDENCE_VERIFIED",
                f"Verified evidence for goal: {updated.title} - Status: {cmd.status.value}",
                now,
            ),
        ),
    )


def _request_additional_evidence(
    goal: Goal, actor_id: int, cmd: RequestAdditionalEvidence, now: datetime
) -> TransitionResult:
    updated = _evolve(
        goal,
        now,
        evidence_verification_status=EvidenceVerificationStatus.ADDITIONAL_EVIDENCE_REQUIRED,
        evidence_verification_notes=cmd.reason,
        evidence_verified_by=actor_id,
        evidence_verified_date=now,
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.owner_id,
                NotificationType.ADDITIONAL_EVIDENCE_REQUIRED,
                f"Additional evidence needed for goal: {updated.title}",
                action_required=True,
            ),
            _audit(
                updated,
                actor_id,
                "ADDITIONAL_EVIDENCE_REQUESTED",
                f"Requested additional evidence for goal: {updated.title}",
                now,
            ),
        ),
    )


def _approve_completion(
    goal: Goal,
    actor_id: int,
    cmd: ApproveCompletion,
    now: datetime,
    *,
    requires_evidence: bool,
) -> TransitionResult:
    blocker = completion_approval_blocker(goal, requires_evidence=requires_evidence)
    if blocker is not None:
        raise InvalidTransition(blocker, goal_id=goal.goal_id)

    verified = goal.evidence_verification_status == EvidenceVerificationStatus.VERIFIED
    decision = CompletionDecision(
        decision=CompletionApprovalStatus.APPROVED,
        decided_by=actor_id,
        decision_date=now,
        manager_comments=cmd.manager_comments,
        evidence_verified=verified,
        rationale=(
            "Evidence verified and goal completion approved"
            if verified
            else "Goal completion approved; evidence not required by review cycle"
        ),
    )
    updated = _evolve(
        goal,
        now,
        status=GoalStatus.COMPLETED,
        completion_approval_status=CompletionApprovalStatus.APPROVED,
        completion_approved_by=actor_id,
        completion_approved_date=now,
        final_completion_date=now,
        manager_completion_comments=cmd.manager_comments,
        completion_decisions=[*goal.completion_decisions, decision],
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.owner_id,
                NotificationType.GOAL_COMPLETION_APPROVED,
                f"Your goal '{updated.title}' completion has been approved!",
                priority=GoalPriority.HIGH.value,
            ),
            _audit(
                updated,
                actor_id,
                "GOAL_COMPLETION_APPROVED",
                f"Approved completion for goal: {updated.title}",
                now,
            ),
        ),
    )


def _reject_completion(
    goal: Goal, actor_id: int, cmd: RejectCompletion, now: datetime
) -> TransitionResult:
    decision = CompletionDecision(
        decision=CompletionApprovalStatus.REJECTED,
        decided_by=actor_id,
        decision_date=now,
        manager_comments=cmd.reason,
        evidence_verified=False,
        rationale="Goal completion rejected",
    )
    updated = _evolve(
        goal,
        now,
        status=GoalStatus.IN_PROGRESS,
        completion_approval_status=CompletionApprovalStatus.REJECTED,
        manager_completion_comments=cmd.reason,
        completion_decisions=[*goal.completion_decisions, decision],
    )
    return TransitionResult(
        goal=updated,
        events=(
            _notify(
                updated,
                updated.owner_id,
                NotificationType.GOAL_COMPLETION_REJECTED,
                f"Your goal '{updated.title}' completion was rejected. Please review feedback.",
                priority=GoalPriority.HIGH.value,
                action_required=True,
            ),
            _audit(
                updated,
                actor_id,
                "GOAL_COMPLETION_REJECTED",
                f"Rejected completion for goal: {updated.title}",
                now,
            ),
        ),
    )


def _delete(goal: Goal, actor_id: int, _cmd: DeleteGoal, now: datetime) -> TransitionResult:
    updated = _evolve(goal, now, status=GoalStatus.REJECTED, deleted=True, deleted_date=now)
    return TransitionResult(
        goal=updated,
        events=(_audit(updated, actor_id, "GOAL_DELETED", f"Deleted goal: {updated.title}", now),),
    )


_HANDLERS: dict[GoalAction, Callable[..., TransitionResult]] = {
    GoalAction.APPROVE: _approve,
    GoalAction.REQUEST_CHANGES: _request_changes,
    GoalAction.UPDATE_CONTENT: _update_content,
    GoalAction.ADD_PROGRESS: _add_progress,
    GoalAction.SUBMIT_COMPLETION: _submit_completion,
    GoalAction.VERIFY_EVIDENCE: _verify_evidence,
    GoalAction.REQUEST_ADDITIONAL_EVIDENCE: _request_additional_evidence,
    GoalAction.REJECT_COMPLETION: _reject_completion,
    GoalAction.DELETE: _delete,
}


def check_action_allowed(goal: Goal, action: GoalAction) -> None:
    sources = ACTION_SOURCES.get(action, frozenset())
    if goal.status not in sources:
        raise InvalidTransition(
            f"Cannot {action.value} a goal in status {goal.status.value}",
            goal_id=goal.goal_id,
        )


def apply(
    *,
    goal: Goal,
    actor_id: int,
    command: GoalCommand,
    requires_evidence: bool,
    now: datetime,
) -> TransitionResult:
    """Apply ``command`` to ``goal``.

    The caller is responsible for authorization. Raises
    :class:`InvalidTransition` when the command is not valid from the goal's
    current status or sub-state and :class:`ValidationFailed` when its payload
    is incomplete. The input goal is never modified.
    """

    check_action_allowed(goal, command.action)

    if isinstance(command, ApproveCompletion):
        return _approve_completion(
            goal, actor_id, command, now, requires_evidence=requires_evidence
        )
    handler = _HANDLERS[command.action]
    return handler(goal, actor_id, command, now)
