"""Reminder sweeper.

Periodically scans goals for states that have been waiting on someone for too
long and asks the notification dispatcher to nudge that person. The sweeper
only reads goals; it never commits to the goal store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from .dispatcher import EventDispatcher
from .events import NotificationRequest, NotificationType
from .models import EvidenceVerificationStatus, Goal, GoalStatus, utc_now

logger = logging.getLogger(__name__)


class GoalReader(Protocol):
    def list(self) -> list[Goal]: ...


@dataclass(frozen=True, slots=True)
class ReminderThresholds:
    pending_approval: timedelta = timedelta(days=3)
    changes_requested: timedelta = timedelta(days=5)
    completion_review: timedelta = timedelta(days=3)
    additional_evidence: timedelta = timedelta(days=5)


@dataclass(frozen=True, slots=True)
class Reminder:
    goal_id: int
    user_id: int
    reason: str
    since: datetime
    message: str

    @property
    def key(self) -> tuple[int, str, str]:
        return (self.goal_id, self.reason, self.since.isoformat())


def _stale_reminder(goal: Goal, now: datetime, thresholds: ReminderThresholds) -> Reminder | None:
    if goal.deleted:
        return None

    if goal.status == GoalStatus.PENDING:
        if goal.request_changes:
            since = goal.last_reviewed_date or goal.status_changed_date
            if now - since >= thresholds.changes_requested:
                return Reminder(
                    goal_id=goal.goal_id,
                    user_id=goal.owner_id,
                    reason="changes_requested",
                    since=since,
                    message=f"Reminder: your manager requested changes to goal '{goal.title}'",
                )
            return None
        since = goal.resubmitted_date or goal.status_changed_date
        if now - since >= thresholds.pending_approval:
            return Reminder(
                goal_id=goal.goal_id,
                user_id=goal.manager_id,
                reason="pending_approval",
                since=since,
                message=f"Reminder: goal '{goal.title}' is waiting for your approval",
            )
        return None

    if goal.status == GoalStatus.PENDING_COMPLETION_APPROVAL:
        evidence = goal.evidence_verification_status
        if evidence == EvidenceVerificationStatus.ADDITIONAL_EVIDENCE_REQUIRED:
            since = goal.evidence_verified_date or goal.updated_date
            if now - since >= thresholds.additional_evidence:
                return Reminder(
                    goal_id=goal.goal_id,
                    user_id=goal.owner_id,
                    reason="additional_evidence",
                    since=since,
                    message=f"Reminder: additional evidence is needed for goal '{goal.title}'",
                )
            return None
        if evidence in {EvidenceVerificationStatus.PENDING, EvidenceVerificationStatus.VERIFIED}:
            since = goal.completion_submitted_date or goal.status_changed_date
            if now - since >= thresholds.completion_review:
                return Reminder(
                    goal_id=goal.goal_id,
                    user_id=goal.manager_id,
                    reason="completion_review",
                    since=since,
                    message=f"Reminder: completion of goal '{goal.title}' is awaiting your review",
                )
        return None

    return None


class ReminderSweeper:
    """Find stale goals and emit one reminder per waiting period.

    The sweeper remembers which reminders it already sent, so repeated sweeps
    don't re-notify until the goal moves on and starts a new waiting period.
    """

    def __init__(
        self,
        *,
        goals: GoalReader,
        dispatcher: EventDispatcher,
        thresholds: ReminderThresholds | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._goals = goals
        self._dispatcher = dispatcher
        self._thresholds = thresholds or ReminderThresholds()
        self._clock = clock
        self._sent: set[tuple[int, str, str]] = set()

    def _stale(self, at: datetime) -> list[Reminder]:
        stale: list[Reminder] = []
        for goal in self._goals.list():
            reminder = _stale_reminder(goal, at, self._thresholds)
            if reminder is not None:
                stale.append(reminder)
        return stale

    def find_due(self, now: datetime | None = None) -> list[Reminder]:
        at = now or self._clock()
        return [r for r in self._stale(at) if r.key not in self._sent]

    def sweep(self, now: datetime | None = None, *, dry_run: bool = False) -> list[Reminder]:
        stale = self._stale(now or self._clock())
        due = [r for r in stale if r.key not in self._sent]
        if dry_run:
            logger.info("Reminder sweep finished", extra={"due": len(due), "dry_run": dry_run})
            return due

        # Forget waiting periods that have ended so the set tracks live goals only.
        self._sent &= {r.key for r in stale}
        if due:
            self._dispatcher.dispatch(_to_requests(due))
            self._sent.update(r.key for r in due)
        logger.info("Reminder sweep finished", extra={"due": len(due), "dry_run": dry_run})
        return due

    @property
    def sent_count(self) -> int:
        """Number of reminders remembered as already sent."""
        return len(self._sent)


def _to_requests(reminders: Iterable[Reminder]) -> list[NotificationRequest]:
    return [
        NotificationRequest(
            user_id=r.user_id,
            event_type=NotificationType.REVIEW_REMINDER,
            message=r.message,
            entity_id=r.goal_id,
            action_required=True,
        )
        for r in reminders
    ]
