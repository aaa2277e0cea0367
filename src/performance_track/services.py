"""Wiring of stores, dispatcher, engine and sweeper from settings."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta

from performance_track.config import WorkflowSettings
from performance_track.store.audit_store import AuditStore
from performance_track.store.goal_store import GoalStore
from performance_track.store.notification_store import NotificationStore
from performance_track.store.review_cycle_store import ReviewCycleStore
from performance_track.workflow.dispatcher import EventDispatcher
from performance_track.workflow.engine import GoalWorkflowEngine
from performance_track.workflow.sweeper import ReminderSweeper, ReminderThresholds


@dataclass(frozen=True, slots=True)
class Services:
    goals: GoalStore
    notifications: NotificationStore
    audit: AuditStore
    cycles: ReviewCycleStore
    dispatcher: EventDispatcher
    engine: GoalWorkflowEngine
    sweeper: ReminderSweeper
    executor: ThreadPoolExecutor | None = None

    def close(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=True)


def reminder_thresholds(settings: WorkflowSettings) -> ReminderThresholds:
    return ReminderThresholds(
        pending_approval=timedelta(days=settings.reminder_pending_approval_days),
        changes_requested=timedelta(days=settings.reminder_changes_requested_days),
        completion_review=timedelta(days=settings.reminder_completion_review_days),
        additional_evidence=timedelta(days=settings.reminder_additional_evidence_days),
    )


def build_services(settings: WorkflowSettings, *, inline_dispatch: bool = False) -> Services:
    """Construct the object graph for one process.

    ``inline_dispatch`` forces synchronous delivery of side effects regardless
    of ``dispatch_workers``; one-shot CLI commands use it so nothing is lost
    when the process exits.
    """

    goals = GoalStore(settings.goals_state_file)
    notifications = NotificationStore(settings.notifications_state_file)
    audit = AuditStore(settings.audit_state_file)
    cycles = ReviewCycleStore(
        settings.review_cycles_state_file,
        evidence_required_default=settings.evidence_required_default,
    )

    executor: ThreadPoolExecutor | None = None
    if not inline_dispatch and settings.dispatch_workers > 0:
        executor = ThreadPoolExecutor(
            max_workers=settings.dispatch_workers, thread_name_prefix="pt-dispatch"
        )
    dispatcher = EventDispatcher(notifier=notifications, auditor=audit, executor=executor)
    engine = GoalWorkflowEngine(store=goals, dispatcher=dispatcher, cycles=cycles)
    sweeper = ReminderSweeper(
        goals=goals, dispatcher=dispatcher, thresholds=reminder_thresholds(settings)
    )
    return Services(
        goals=goals,
        notifications=notifications,
        audit=audit,
        cycles=cycles,
        dispatcher=dispatcher,
        engine=engine,
        sweeper=sweeper,
        executor=executor,
    )
