"""Goal workflow engine.

Per request: load the goal, authorize the actor, run the pure transition,
commit with a version check, then hand the resulting events to the
dispatcher. Every check happens before the commit, so a failing request
leaves the stored goal untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from . import state_machine
from .actions import (
    AddProgress,
    ApproveCompletion,
    ApproveGoal,
    CreateGoal,
    DeleteGoal,
    GoalAction,
    GoalCommand,
    RejectCompletion,
    RequestAdditionalEvidence,
    RequestChanges,
    SubmitCompletion,
    UpdateContent,
    VerifyEvidence,
)
from .authorization import authorize, authorize_create
from .dispatcher import EventDispatcher
from .errors import Conflict, WorkflowError
from .evidence import parse_verification_status
from .models import Actor, Goal, GoalContent, UserRole, utc_now
from .progress import ProgressLog

logger = logging.getLogger(__name__)

_CREATE_ATTEMPTS = 3


class GoalRepository(Protocol):
    def list(self) -> list[Goal]: ...

    def get(self, goal_id: int) -> Goal | None: ...

    def find_by_owner(self, owner_id: int) -> list[Goal]: ...

    def find_by_manager(self, manager_id: int) -> list[Goal]: ...

    def next_id(self) -> int: ...

    def insert(self, goal: Goal) -> Goal: ...

    def load_for_update(self, goal_id: int) -> Goal: ...

    def commit(self, goal: Goal) -> Goal: ...


class ReviewCyclePolicy(Protocol):
    def requires_evidence(self, cycle_id: int | None) -> bool: ...


class GoalWorkflowEngine:
    def __init__(
        self,
        *,
        store: GoalRepository,
        dispatcher: EventDispatcher,
        cycles: ReviewCyclePolicy,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._cycles = cycles
        self._clock = clock

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_goal(self, actor: Actor, command: CreateGoal) -> Goal:
        authorize_create(actor)

        attempt = 0
        while True:
            attempt += 1
            result = state_machine.create(
                goal_id=self._store.next_id(),
                owner_id=actor.user_id,
                command=command,
                now=self._clock(),
            )
            try:
                stored = self._store.insert(result.goal)
            except Conflict:
                # Another create took the same id between next_id() and insert().
                if attempt >= _CREATE_ATTEMPTS:
                    raise
                continue
            break

        logger.info(
            "Goal created",
            extra={
                "goal_id": stored.goal_id,
                "owner_id": stored.owner_id,
                "manager_id": stored.manager_id,
            },
        )
        self._dispatcher.dispatch(result.events)
        return stored

    def execute(self, actor: Actor, goal_id: int, command: GoalCommand) -> Goal:
        """Authorize and apply one workflow command against a stored goal."""

        action = command.action
        try:
            goal = self._store.load_for_update(goal_id)
            authorize(actor=actor, goal=goal, action=action)

            requires_evidence = False
            if isinstance(command, ApproveCompletion):
                requires_evidence = self._cycles.requires_evidence(goal.cycle_id)

            result = state_machine.apply(
                goal=goal,
                actor_id=actor.user_id,
                command=command,
                requires_evidence=requires_evidence,
                now=self._clock(),
            )
            stored = self._store.commit(result.goal)
        except WorkflowError as e:
            logger.info(
                "Goal action rejected",
                extra={
                    "goal_id": goal_id,
                    "action": action.value,
                    "actor_id": actor.user_id,
                    "role": actor.role.value,
                    "code": e.code,
                    "reason": e.message,
                },
            )
            raise

        logger.info(
            "Goal transition applied",
            extra={
                "goal_id": goal_id,
                "action": action.value,
                "actor_id": actor.user_id,
                "from_status": goal.status.value,
                "to_status": stored.status.value,
                "version": stored.version,
            },
        )
        self._dispatcher.dispatch(result.events)
        return stored

    def approve(self, actor: Actor, goal_id: int) -> Goal:
        return self.execute(actor, goal_id, ApproveGoal())

    def request_changes(self, actor: Actor, goal_id: int, comments: str | None = None) -> Goal:
        return self.execute(actor, goal_id, RequestChanges(comments=comments))

    def update_content(self, actor: Actor, goal_id: int, content: GoalContent) -> Goal:
        return self.execute(actor, goal_id, UpdateContent(content=content))

    def add_progress(self, actor: Actor, goal_id: int, note: str | None) -> Goal:
        return self.execute(actor, goal_id, AddProgress(note=note))

    def submit_completion(
        self,
        actor: Actor,
        goal_id: int,
        *,
        evidence_link: str | None,
        link_description: str | None,
        access_instructions: str | None = None,
        completion_notes: str | None = None,
    ) -> Goal:
        return self.execute(
            actor,
            goal_id,
            SubmitCompletion(
                evidence_link=evidence_link,
                link_description=link_description,
                access_instructions=access_instructions,
                completion_notes=completion_notes,
            ),
        )

    def verify_evidence(
        self, actor: Actor, goal_id: int, status: str | None, notes: str | None = None
    ) -> Goal:
        # Authorization and state are checked before the payload, so an outsider
        # sending garbage gets Forbidden rather than a validation hint.
        goal = self._store.load_for_update(goal_id)
        authorize(actor=actor, goal=goal, action=GoalAction.VERIFY_EVIDENCE)
        state_machine.check_action_allowed(goal, GoalAction.VERIFY_EVIDENCE)
        parsed = parse_verification_status(status)
        return self.execute(actor, goal_id, VerifyEvidence(status=parsed, notes=notes))

    def request_additional_evidence(
        self, actor: Actor, goal_id: int, reason: str | None = None
    ) -> Goal:
        return self.execute(actor, goal_id, RequestAdditionalEvidence(reason=reason))

    def approve_completion(
        self, actor: Actor, goal_id: int, manager_comments: str | None = None
    ) -> Goal:
        return self.execute(actor, goal_id, ApproveCompletion(manager_comments=manager_comments))

    def reject_completion(self, actor: Actor, goal_id: int, reason: str | None = None) -> Goal:
        return self.execute(actor, goal_id, RejectCompletion(reason=reason))

    def delete_goal(self, actor: Actor, goal_id: int) -> Goal:
        return self.execute(actor, goal_id, DeleteGoal())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_goal(self, actor: Actor, goal_id: int) -> Goal:
        goal = self._store.load_for_update(goal_id)
        authorize(actor=actor, goal=goal, action=GoalAction.VIEW)
        return goal

    def list_goals(
        self,
        actor: Actor,
        *,
        owner_id: int | None = None,
        manager_id: int | None = None,
    ) -> list[Goal]:
        """Goals visible to ``actor``.

        Employees always get their own goals. Managers get their team's goals,
        optionally narrowed to one owner. Admins may filter by owner or
        manager, and see everything otherwise.
        """

        if actor.role == UserRole.EMPLOYEE:
            return self._store.find_by_owner(actor.user_id)

        if actor.role == UserRole.MANAGER:
            team = self._store.find_by_manager(actor.user_id)
            if owner_id is not None:
                return [g for g in team if g.owner_id == owner_id]
            return team

        if owner_id is not None:
            return self._store.find_by_owner(owner_id)
        if manager_id is not None:
            return self._store.find_by_manager(manager_id)
        return self._store.list()

    def progress(self, actor: Actor, goal_id: int) -> ProgressLog:
        goal = self.get_goal(actor, goal_id)
        return ProgressLog(goal.progress_log)
