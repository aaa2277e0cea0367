"""Unit tests for the reminder sweeper."""

from __future__ import annotations

from datetime import timedelta

from performance_track.services import Services
from performance_track.workflow.actions import CreateGoal
from performance_track.workflow.engine import GoalWorkflowEngine
from performance_track.workflow.models import Actor, Goal


def _reminders(services: Services, user_id: int) -> list[str]:
    return [
        n.message
        for n in services.notifications.list_for_user(user_id)
        if n.type == "REVIEW_REMINDER"
    ]


def test_fresh_goals_are_not_due(services: Services, pending_goal: Goal) -> None:
    assert services.sweeper.find_due(pending_goal.created_date + timedelta(days=1)) == []


def test_pending_approval_reminds_manager_once(
    services: Services, pending_goal: Goal, manager: Actor
) -> None:
    later = pending_goal.status_changed_date + timedelta(days=4)

    sent = services.sweeper.sweep(later)
    assert [(r.reason, r.user_id) for r in sent] == [("pending_approval", manager.user_id)]
    assert len(_reminders(services, manager.user_id)) == 1

    # Same waiting period: nothing new.
    assert services.sweeper.sweep(later + timedelta(days=1)) == []
    assert len(_reminders(services, manager.user_id)) == 1


def test_dry_run_sends_nothing(services: Services, pending_goal: Goal, manager: Actor) -> None:
    later = pending_goal.status_changed_date + timedelta(days=4)

    due = services.sweeper.sweep(later, dry_run=True)
    assert len(due) == 1
    assert _reminders(services, manager.user_id) == []
    assert len(services.sweeper.sweep(later)) == 1


def test_changes_requested_reminds_owner(
    services: Services,
    engine: GoalWorkflowEngine,
    pending_goal: Goal,
    manager: Actor,
    employee: Actor,
) -> None:
    reviewed = engine.request_changes(manager, pending_goal.goal_id, "Tighten scope")
    assert reviewed.last_reviewed_date is not None

    assert services.sweeper.find_due(reviewed.last_reviewed_date + timedelta(days=4)) == []
    due = services.sweeper.find_due(reviewed.last_reviewed_date + timedelta(days=5))
    assert [(r.reason, r.user_id) for r in due] == [("changes_requested", employee.user_id)]


def test_completion_review_and_additional_evidence(
    services: Services,
    engine: GoalWorkflowEngine,
    submitted_goal: Goal,
    manager: Actor,
    employee: Actor,
) -> None:
    assert submitted_goal.completion_submitted_date is not None
    due = services.sweeper.find_due(submitted_goal.completion_submitted_date + timedelta(days=3))
    assert [(r.reason, r.user_id) for r in due] == [("completion_review", manager.user_id)]

    asked = engine.request_additional_evidence(manager, submitted_goal.goal_id, "Private link")
    assert asked.evidence_verified_date is not None
    due = services.sweeper.find_due(asked.evidence_verified_date + timedelta(days=5))
    assert [(r.reason, r.user_id) for r in due] == [("additional_evidence", employee.user_id)]


def test_terminal_and_deleted_goals_are_skipped(
    services: Services, engine: GoalWorkflowEngine, active_goal: Goal, employee: Actor
) -> None:
    engine.delete_goal(employee, active_goal.goal_id)
    assert services.sweeper.find_due(active_goal.created_date + timedelta(days=30)) == []


def test_sweep_forgets_reminders_once_the_goal_moves_on(
    services: Services,
    engine: GoalWorkflowEngine,
    pending_goal: Goal,
    manager: Actor,
    employee: Actor,
    content_factory,
) -> None:
    later = pending_goal.status_changed_date + timedelta(days=4)
    assert len(services.sweeper.sweep(later)) == 1
    assert services.sweeper.sent_count == 1

    # Still waiting: the reminder stays remembered.
    assert services.sweeper.sweep(later + timedelta(days=1)) == []
    assert services.sweeper.sent_count == 1

    engine.approve(manager, pending_goal.goal_id)
    assert services.sweeper.sweep(later + timedelta(days=2)) == []
    assert services.sweeper.sent_count == 0

    # A dry run never changes what was remembered.
    other = engine.create_goal(
        employee, CreateGoal(content=content_factory(), manager_id=manager.user_id)
    )
    due = services.sweeper.sweep(other.status_changed_date + timedelta(days=4), dry_run=True)
    assert len(due) == 1
    assert services.sweeper.sent_count == 0
