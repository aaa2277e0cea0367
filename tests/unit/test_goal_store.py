"""Unit tests for the JSON-backed stores."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest

from performance_track.store.audit_store import AuditStore
from performance_track.store.goal_store import GoalStore
from performance_track.store.notification_store import NotificationStatus, NotificationStore
from performance_track.store.review_cycle_store import ReviewCycleStore
from performance_track.workflow.errors import Conflict, GoalNotFound
from performance_track.workflow.models import Goal, GoalStatus


def _goal(goal_id: int = 1) -> Goal:
    return Goal(
        goal_id=goal_id,
        owner_id=10,
        manager_id=20,
        title="Write the onboarding guide",
        description="Cover local setup and deploys",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 2, 1),
    )


def test_insert_sets_first_version(tmp_path: Path) -> None:
    store = GoalStore(tmp_path / "goals.json")
    stored = store.insert(_goal())

    assert stored.version == 1
    assert store.next_id() == 2
    with pytest.raises(Conflict):
        store.insert(_goal())


def test_commit_bumps_version(tmp_path: Path) -> None:
    store = GoalStore(tmp_path / "goals.json")
    store.insert(_goal())

    loaded = store.load_for_update(1)
    committed = store.commit(loaded.model_copy(update={"status": GoalStatus.IN_PROGRESS}))

    assert committed.version == 2
    reloaded = GoalStore(tmp_path / "goals.json").get(1)
    assert reloaded is not None
    assert reloaded.status == GoalStatus.IN_PROGRESS
    assert reloaded.version == 2


def test_stale_commit_is_rejected_and_writes_nothing(tmp_path: Path) -> None:
    store = GoalStore(tmp_path / "goals.json")
    store.insert(_goal())

    first = store.load_for_update(1)
    second = store.load_for_update(1)
    store.commit(first.model_copy(update={"title": "First writer"}))

    with pytest.raises(Conflict):
        store.commit(second.model_copy(update={"title": "Second writer"}))

    current = store.get(1)
    assert current is not None
    assert current.title == "First writer"
    assert current.version == 2


def test_missing_goal(tmp_path: Path) -> None:
    store = GoalStore(tmp_path / "goals.json")
    with pytest.raises(GoalNotFound):
        store.load_for_update(42)
    with pytest.raises(GoalNotFound):
        store.commit(_goal(42))


def test_corrupt_state_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "goals.json"
    path.write_text("{not json", encoding="utf-8")

    store = GoalStore(path)
    assert store.list() == []
    assert store.insert(_goal()).goal_id == 1


def test_owner_and_manager_lookups(tmp_path: Path) -> None:
    store = GoalStore(tmp_path / "goals.json")
    store.insert(_goal(1))
    store.insert(_goal(2).model_copy(update={"owner_id": 11, "manager_id": 21}))

    assert [g.goal_id for g in store.find_by_owner(11)] == [2]
    assert [g.goal_id for g in store.find_by_manager(20)] == [1]


def test_notification_inbox(tmp_path: Path) -> None:
    store = NotificationStore(tmp_path / "notifications.json")
    first = store.notify(10, "GOAL_APPROVED", "approved", "Goal", 1)
    store.notify(10, "EVIDENCE_VERIFIED", "verified", "Goal", 1, action_required=True)
    store.notify(20, "GOAL_SUBMITTED", "submitted", "Goal", 1)

    inbox = store.list_for_user(10)
    assert [n.type for n in inbox] == ["EVIDENCE_VERIFIED", "GOAL_APPROVED"]
    assert all(n.status == NotificationStatus.UNREAD for n in inbox)

    read = store.mark_read(first.notification_id)
    assert read.status == NotificationStatus.READ
    assert read.read_date is not None
    assert store.mark_read(first.notification_id).read_date == read.read_date

    assert store.mark_all_read(10) == 1
    assert store.list_for_user(10, status=NotificationStatus.UNREAD) == []
    assert len(store.list_for_user(20, status=NotificationStatus.UNREAD)) == 1

    with pytest.raises(KeyError):
        store.mark_read(999)


def test_audit_query_filters(tmp_path: Path) -> None:
    store = AuditStore(tmp_path / "audit_log.json")
    t0 = datetime(2026, 3, 1, tzinfo=UTC)
    store.record(10, "GOAL_CREATED", "Goal", 1, "Created goal", t0)
    store.record(20, "GOAL_APPROVED", "Goal", 1, "Approved goal", t0 + timedelta(days=1))
    store.record(10, "GOAL_CREATED", "Goal", 2, "Created goal", t0 + timedelta(days=2))

    assert [r.related_entity_id for r in store.query(action="goal_created")] == [2, 1]
    assert [r.action for r in store.query(actor_id=20)] == ["GOAL_APPROVED"]
    assert len(store.query(entity_id=1)) == 2

    # Naive bounds are taken as UTC.
    window = store.query(start=datetime(2026, 3, 1, 12), end=datetime(2026, 3, 2, 12))
    assert [r.action for r in window] == ["GOAL_APPROVED"]


def test_review_cycle_evidence_policy(tmp_path: Path) -> None:
    store = ReviewCycleStore(tmp_path / "review_cycles.json", evidence_required_default=True)

    assert store.requires_evidence(None) is True
    assert store.requires_evidence(3) is True

    store.set_evidence_required(3, False)
    assert store.requires_evidence(3) is False

    lenient = ReviewCycleStore(tmp_path / "review_cycles.json", evidence_required_default=False)
    assert lenient.requires_evidence(4) is False
    assert lenient.requires_evidence(3) is False
