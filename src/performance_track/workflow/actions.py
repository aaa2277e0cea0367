"""Workflow commands.

Each command is a small frozen value carrying exactly the payload its
transition needs. ``action`` tags the variant so the authorization table and
the transition table can be looked up without inspecting payload fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .models import EvidenceVerificationStatus, GoalContent


class GoalAction(str, Enum):
    CREATE = "create"
    APPROVE = "approve"
    REQUEST_CHANGES = "request-changes"
    UPDATE_CONTENT = "update-content"
    ADD_PROGRESS = "add-progress"
    SUBMIT_COMPLETION = "submit-completion"
    VERIFY_EVIDENCE = "verify-evidence"
    REQUEST_ADDITIONAL_EVIDENCE = "request-additional-evidence"
    APPROVE_COMPLETION = "approve-completion"
    REJECT_COMPLETION = "reject-completion"
    DELETE = "delete"
    VIEW = "view"


@dataclass(frozen=True, slots=True)
class CreateGoal:
    action: ClassVar[GoalAction] = GoalAction.CREATE

    content: GoalContent
    manager_id: int
    cycle_id: int | None = None


@dataclass(frozen=True, slots=True)
class ApproveGoal:
    action: ClassVar[GoalAction] = GoalAction.APPROVE


@dataclass(frozen=True, slots=True)
class RequestChanges:
    action: ClassVar[GoalAction] = GoalAction.REQUEST_CHANGES

    comments: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateContent:
    action: ClassVar[GoalAction] = GoalAction.UPDATE_CONTENT

    content: GoalContent


@dataclass(frozen=True, slots=True)
class AddProgress:
    action: ClassVar[GoalAction] = GoalAction.ADD_PROGRESS

    note: str | None


@dataclass(frozen=True, slots=True)
class SubmitCompletion:
    action: ClassVar[GoalAction] = GoalAction.SUBMIT_COMPLETION

    evidence_link: str | None
    link_description: str | None
    access_instructions: str | None = None
    completion_notes: str | None = None


@dataclass(frozen=True, slots=True)
class VerifyEvidence:
    action: ClassVar[GoalAction] = GoalAction.VERIFY_EVIDENCE

    status: EvidenceVerificationStatus
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class RequestAdditionalEvidence:
    action: ClassVar[GoalAction] = GoalAction.REQUEST_ADDITIONAL_EVIDENCE

    reason: str | None = None


@dataclass(frozen=True, slots=True)
class ApproveCompletion:
    action: ClassVar[GoalAction] = GoalAction.APPROVE_COMPLETION

    manager_comments: str | None = None


@dataclass(frozen=True, slots=True)
class RejectCompletion:
    action: ClassVar[GoalAction] = GoalAction.REJECT_COMPLETION

    reason: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteGoal:
    action: ClassVar[GoalAction] = GoalAction.DELETE


GoalCommand = (
    ApproveGoal
    | RequestChanges
    | UpdateContent
    | AddProgress
    | SubmitCompletion
    | VerifyEvidence
    | RequestAdditionalEvidence
    | ApproveCompletion
    | RejectCompletion
    | DeleteGoal
)
