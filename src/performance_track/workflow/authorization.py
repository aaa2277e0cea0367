"""Role and ownership gates for goal actions.

One table, consulted once per request. Role checks are never repeated inside
transitions or routes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .actions import GoalAction
from .errors import Forbidden
from .models import Actor, Goal, UserRole


def _is_owner(actor: Actor, goal: Goal) -> bool:
    return actor.user_id == goal.owner_id


def _is_assigned_manager(actor: Actor, goal: Goal) -> bool:
    return actor.user_id == goal.manager_id


def _is_participant_or_admin(actor: Actor, goal: Goal) -> bool:
    if actor.role == UserRole.ADMIN:
        return True
    return actor.user_id in {goal.owner_id, goal.manager_id}


@dataclass(frozen=True, slots=True)
class Permission:
    roles: frozenset[UserRole]
    relation: Callable[[Actor, Goal], bool]
    relation_name: str


_EMPLOYEE_OWNER = Permission(frozenset({UserRole.EMPLOYEE}), _is_owner, "owner")
_ASSIGNED_MANAGER = Permission(
    frozenset({UserRole.MANAGER}), _is_assigned_manager, "assigned manager"
)

AUTHORIZATION: dict[GoalAction, Permission] = {
    GoalAction.APPROVE: _ASSIGNED_MANAGER,
    GoalAction.REQUEST_CHANGES: _ASSIGNED_MANAGER,
    GoalAction.UPDATE_CONTENT: _EMPLOYEE_OWNER,
    GoalAction.ADD_PROGRESS: _EMPLOYEE_OWNER,
    GoalAction.SUBMIT_COMPLETION: _EMPLOYEE_OWNER,
    GoalAction.VERIFY_EVIDENCE: _ASSIGNED_MANAGER,
    GoalAction.REQUEST_ADDITIONAL_EVIDENCE: _ASSIGNED_MANAGER,
    GoalAction.APPROVE_COMPLETION: _ASSIGNED_MANAGER,
    GoalAction.REJECT_COMPLETION: _ASSIGNED_MANAGER,
    GoalAction.DELETE: _EMPLOYEE_OWNER,
    GoalAction.VIEW: Permission(
        frozenset(UserRole), _is_participant_or_admin, "owner, assigned manager or admin"
    ),
}

CREATE_ROLES: frozenset[UserRole] = frozenset({UserRole.EMPLOYEE})


def authorize(*, actor: Actor, goal: Goal, action: GoalAction) -> None:
    """Raise :class:`Forbidden` unless ``actor`` may perform ``action`` on ``goal``."""

    permission = AUTHORIZATION.get(action)
    if permission is None:
        raise Forbidden(f"Action {action.value!r} is not permitted", goal_id=goal.goal_id)

    if actor.role not in permission.roles:
        raise Forbidden(
            f"Role {actor.role.value} may not {action.value} a goal", goal_id=goal.goal_id
        )

    if not permission.relation(actor, goal):
        raise Forbidden(
            f"Only the goal's {permission.relation_name} may {action.value} it",
            goal_id=goal.goal_id,
        )


def authorize_create(actor: Actor) -> None:
    if actor.role not in CREATE_ROLES:
        raise Forbidden(f"Role {actor.role.value} may not create goals")
