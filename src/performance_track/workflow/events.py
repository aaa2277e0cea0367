from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

GOAL_ENTITY = "Goal"


class NotificationType(str, Enum):
    GOAL_SUBMITTED = "GOAL_SUBMITTED"
    GOAL_APPROVED = "GOAL_APPROVED"
    GOAL_CHANGE_REQUESTED = "GOAL_CHANGE_REQUESTED"
    GOAL_RESUBMITTED = "GOAL_RESUBMITTED"
    GOAL_COMPLETION_SUBMITTED = "GOAL_COMPLETION_SUBMITTED"
    EVIDENCE_VERIFIED = "EVIDENCE_VERIFIED"
    ADDITIONAL_EVIDENCE_REQUIRED = "ADDITIONAL_EVIDENCE_REQUIRED"
    GOAL_COMPLETION_APPROVED = "GOAL_COMPLETION_APPROVED"
    GOAL_COMPLETION_REJECTED = "GOAL_COMPLETION_REJECTED"
    REVIEW_REMINDER = "REVIEW_REMINDER"


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    """Ask the notification dispatcher to tell ``user_id`` about an entity.

    Emitted by transitions; delivered only after the transition is committed.
    """

    user_id: int
    event_type: NotificationType
    message: str
    entity_id: int
    entity_type: str = GOAL_ENTITY
    priority: str | None = None
    action_required: bool = False


@dataclass(frozen=True, slots=True)
class AuditRequest:
    """Ask the audit recorder to record that ``actor_id`` did ``action``."""

    actor_id: int
    action: str
    details: str
    entity_id: int
    timestamp: datetime
    entity_type: str = GOAL_ENTITY


OutboundEvent = NotificationRequest | AuditRequest
