"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date
from pathlib import Path

import pytest

from performance_track.config import WorkflowSettings
from performance_track.services import Services, build_services
from performance_track.workflow.actions import CreateGoal
from performance_track.workflow.engine import GoalWorkflowEngine
from performance_track.workflow.models import Actor, Goal, GoalContent, GoalPriority, UserRole

EMPLOYEE_ID = 10
OTHER_EMPLOYEE_ID = 11
MANAGER_ID = 20
OTHER_MANAGER_ID = 21
ADMIN_ID = 1


@pytest.fixture
def temp_state_dir(tmp_path: Path) -> Path:
    """Provide a temporary state directory."""
    state_dir = tmp_path / "pt_state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def settings(temp_state_dir: Path) -> WorkflowSettings:
    """Settings pointing at the temporary state directory, delivering events inline."""
    return WorkflowSettings(PT_STATE_PATH=temp_state_dir, PT_DISPATCH_WORKERS=0, _env_file=None)


@pytest.fixture
def services(settings: WorkflowSettings) -> Iterator[Services]:
    built = build_services(settings, inline_dispatch=True)
    yield built
    built.close()


@pytest.fixture
def engine(services: Services) -> GoalWorkflowEngine:
    return services.engine


@pytest.fixture
def employee() -> Actor:
    return Actor(user_id=EMPLOYEE_ID, role=UserRole.EMPLOYEE)


@pytest.fixture
def other_employee() -> Actor:
    return Actor(user_id=OTHER_EMPLOYEE_ID, role=UserRole.EMPLOYEE)


@pytest.fixture
def manager() -> Actor:
    return Actor(user_id=MANAGER_ID, role=UserRole.MANAGER)


@pytest.fixture
def other_manager() -> Actor:
    return Actor(user_id=OTHER_MANAGER_ID, role=UserRole.MANAGER)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=ADMIN_ID, role=UserRole.ADMIN)


def make_content(**overrides: object) -> GoalContent:
    fields: dict[str, object] = {
        "title": "Ship the reporting service",
        "description": "Deliver v1 of the reporting service to production",
        "priority": GoalPriority.HIGH,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 6, 30),
    }
    fields.update(overrides)
    return GoalContent.model_validate(fields)


@pytest.fixture
def pending_goal(engine: GoalWorkflowEngine, employee: Actor) -> Goal:
    return engine.create_goal(
        employee, CreateGoal(content=make_content(), manager_id=MANAGER_ID)
    )


@pytest.fixture
def active_goal(engine: GoalWorkflowEngine, pending_goal: Goal, manager: Actor) -> Goal:
    return engine.approve(manager, pending_goal.goal_id)


@pytest.fixture
def submitted_goal(engine: GoalWorkflowEngine, active_goal: Goal, employee: Actor) -> Goal:
    return engine.submit_completion(
        employee,
        active_goal.goal_id,
        evidence_link="https://docs.example.com/report",
        link_description="Launch report",
    )


@pytest.fixture
def content_factory() -> Callable[..., GoalContent]:
    return make_content
