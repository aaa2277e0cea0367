from __future__ import annotations

from datetime import date

import pytest

from performance_track.workflow.actions import GoalAction
from performance_track.workflow.authorization import AUTHORIZATION, authorize, authorize_create
from performance_track.workflow.errors import Forbidden
from performance_track.workflow.models import Actor, Goal, UserRole

GOAL = Goal(
    goal_id=1,
    owner_id=10,
    manager_id=20,
    title="t",
    description="d",
    start_date=date(2026, 1, 1),
    end_date=date(2026, 2, 1),
)

OWNER = Actor(user_id=10, role=UserRole.EMPLOYEE)
OTHER_EMPLOYEE = Actor(user_id=11, role=UserRole.EMPLOYEE)
MANAGER = Actor(user_id=20, role=UserRole.MANAGER)
OTHER_MANAGER = Actor(user_id=21, role=UserRole.MANAGER)
ADMIN = Actor(user_id=1, role=UserRole.ADMIN)

MANAGER_ACTIONS = [
    GoalAction.APPROVE,
    GoalAction.REQUEST_CHANGES,
    GoalAction.VERIFY_EVIDENCE,
    GoalAction.REQUEST_ADDITIONAL_EVIDENCE,
    GoalAction.APPROVE_COMPLETION,
    GoalAction.REJECT_COMPLETION,
]
EMPLOYEE_ACTIONS = [
    GoalAction.UPDATE_CONTENT,
    GoalAction.ADD_PROGRESS,
    GoalAction.SUBMIT_COMPLETION,
    GoalAction.DELETE,
]


def test_every_goal_action_has_a_permission() -> None:
    assert set(AUTHORIZATION) == set(GoalAction) - {GoalAction.CREATE}


@pytest.mark.parametrize("action", MANAGER_ACTIONS)
def test_manager_actions_need_the_assigned_manager(action: GoalAction) -> None:
    authorize(actor=MANAGER, goal=GOAL, action=action)
    for actor in (OTHER_MANAGER, OWNER, ADMIN):
        with pytest.raises(Forbidden):
            authorize(actor=actor, goal=GOAL, action=action)


@pytest.mark.parametrize("action", EMPLOYEE_ACTIONS)
def test_employee_actions_need_the_owner(action: GoalAction) -> None:
    authorize(actor=OWNER, goal=GOAL, action=action)
    for actor in (OTHER_EMPLOYEE, MANAGER, ADMIN):
        with pytest.raises(Forbidden):
            authorize(actor=actor, goal=GOAL, action=action)


def test_a_manager_id_with_employee_role_cannot_approve() -> None:
    impostor = Actor(user_id=20, role=UserRole.EMPLOYEE)
    with pytest.raises(Forbidden):
        authorize(actor=impostor, goal=GOAL, action=GoalAction.APPROVE)


def test_view_is_open_to_participants_and_admins() -> None:
    for actor in (OWNER, MANAGER, ADMIN):
        authorize(actor=actor, goal=GOAL, action=GoalAction.VIEW)
    for actor in (OTHER_EMPLOYEE, OTHER_MANAGER):
        with pytest.raises(Forbidden):
            authorize(actor=actor, goal=GOAL, action=GoalAction.VIEW)


def test_only_employees_create_goals() -> None:
    authorize_create(OWNER)
    with pytest.raises(Forbidden):
        authorize_create(MANAGER)
    with pytest.raises(Forbidden):
        authorize_create(ADMIN)
