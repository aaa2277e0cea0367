"""Goal domain model.

The goal references its owner and manager by id only. User records live in
the identity service; the workflow never embeds them.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class GoalStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_COMPLETION_APPROVAL = "PENDING_COMPLETION_APPROVAL"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES: frozenset[GoalStatus] = frozenset({GoalStatus.COMPLETED, GoalStatus.REJECTED})


class EvidenceVerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    ADDITIONAL_EVIDENCE_REQUIRED = "ADDITIONAL_EVIDENCE_REQUIRED"
    REJECTED = "REJECTED"


class CompletionApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class GoalCategory(str, Enum):
    TECHNICAL = "TECHNICAL"
    BEHAVIORAL = "BEHAVIORAL"
    PROFESSIONAL_DEVELOPMENT = "PROFESSIONAL_DEVELOPMENT"
    OTHER = "OTHER"


class GoalPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Actor(BaseModel):
    """The resolved identity making a request."""

    user_id: int
    role: UserRole


class GoalContent(BaseModel):
    """Employee-editable descriptive fields of a goal."""

    title: str
    description: str
    category: GoalCategory = GoalCategory.OTHER
    priority: GoalPriority = GoalPriority.MEDIUM
    start_date: date
    end_date: date


class ProgressEntry(BaseModel):
    timestamp: datetime
    note: str


class FeedbackEntry(BaseModel):
    given_by: int
    comments: str | None = None
    feedback_type: str = "CHANGE_REQUEST"
    date: datetime


class CompletionDecision(BaseModel):
    """Receipt of a manager's decision on a submitted completion."""

    decision: CompletionApprovalStatus
    decided_by: int
    decision_date: datetime
    manager_comments: str | None = None
    evidence_verified: bool = False
    rationale: str = ""


class Goal(BaseModel):
    """Persisted goal record.

    ``version`` is bumped by the store on every successful commit and is used to
    reject writes based on a stale read.
    """

    goal_id: int
    owner_id: int
    manager_id: int
    cycle_id: int | None = None

    title: str
    description: str
    category: GoalCategory = GoalCategory.OTHER
    priority: GoalPriority = GoalPriority.MEDIUM
    start_date: date
    end_date: date

    status: GoalStatus = GoalStatus.PENDING
    request_changes: bool = False

    approved_by: int | None = None
    approved_date: datetime | None = None
    last_reviewed_by: int | None = None
    last_reviewed_date: datetime | None = None
    resubmitted_date: datetime | None = None

    progress_log: list[ProgressEntry] = Field(default_factory=list)
    feedback: list[FeedbackEntry] = Field(default_factory=list)

    evidence_link: str | None = None
    evidence_link_description: str | None = None
    evidence_access_instructions: str | None = None
    completion_notes: str | None = None
    completion_submitted_date: datetime | None = None

    evidence_verification_status: EvidenceVerificationStatus | None = None
    evidence_verification_notes: str | None = None
    evidence_verified_by: int | None = None
    evidence_verified_date: datetime | None = None

    completion_approval_status: CompletionApprovalStatus | None = None
    completion_approved_by: int | None = None
    completion_approved_date: datetime | None = None
    final_completion_date: datetime | None = None
    manager_completion_comments: str | None = None
    completion_decisions: list[CompletionDecision] = Field(default_factory=list)

    deleted: bool = False
    deleted_date: datetime | None = None

    created_date: datetime = Field(default_factory=utc_now)
    updated_date: datetime = Field(default_factory=utc_now)
    status_changed_date: datetime = Field(default_factory=utc_now)
    version: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def content(self) -> GoalContent:
        return GoalContent(
            title=self.title,
            description=self.description,
            category=self.category,
            priority=self.priority,
            start_date=self.start_date,
            end_date=self.end_date,
        )
