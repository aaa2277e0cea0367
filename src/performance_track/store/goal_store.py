"""Goal persistence with optimistic concurrency.

Every goal carries a ``version``. ``load_for_update`` hands out a snapshot and
``commit`` only accepts it back if nobody else committed the same goal in the
meantime; otherwise it raises :class:`Conflict` and writes nothing. The
compare-and-write happens under the store lock, so two requests racing on one
goal cannot both succeed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from performance_track.store.files import load_json_list, save_json_list
from performance_track.workflow.errors import Conflict, GoalNotFound
from performance_track.workflow.models import Goal

logger = logging.getLogger(__name__)


class GoalStore:
    """JSON-file backed store for goal records."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load_unlocked(self) -> dict[int, Goal]:
        goals: dict[int, Goal] = {}
        for item in load_json_list(self._path):
            goal = Goal.model_validate(item)
            goals[goal.goal_id] = goal
        return goals

    def _save_unlocked(self, goals: dict[int, Goal]) -> None:
        ordered = [goals[goal_id] for goal_id in sorted(goals)]
        save_json_list(self._path, ordered)

    def list(self) -> list[Goal]:
        with self._lock:
            return [goal for _, goal in sorted(self._load_unlocked().items())]

    def get(self, goal_id: int) -> Goal | None:
        with self._lock:
            return self._load_unlocked().get(goal_id)

    def find_by_owner(self, owner_id: int) -> list[Goal]:
        return [g for g in self.list() if g.owner_id == owner_id]

    def find_by_manager(self, manager_id: int) -> list[Goal]:
        return [g for g in self.list() if g.manager_id == manager_id]

    def next_id(self) -> int:
        with self._lock:
            goals = self._load_unlocked()
            return max(goals, default=0) + 1

    def insert(self, goal: Goal) -> Goal:
        """Persist a brand-new goal. Raises :class:`Conflict` if the id is taken."""

        with self._lock:
            goals = self._load_unlocked()
            if goal.goal_id in goals:
                raise Conflict(f"Goal id {goal.goal_id} is already taken", goal_id=goal.goal_id)
            stored = goal.model_copy(update={"version": 1})
            goals[stored.goal_id] = stored
            self._save_unlocked(goals)
            return stored

    def load_for_update(self, goal_id: int) -> Goal:
        goal = self.get(goal_id)
        if goal is None:
            raise GoalNotFound(f"Goal {goal_id} not found", goal_id=goal_id)
        return goal

    def commit(self, goal: Goal) -> Goal:
        """Write ``goal`` if it is based on the latest stored version."""

        with self._lock:
            goals = self._load_unlocked()
            current = goals.get(goal.goal_id)
            if current is None:
                raise GoalNotFound(f"Goal {goal.goal_id} not found", goal_id=goal.goal_id)
            if current.version != goal.version:
                logger.info(
                    "Rejected stale goal write",
                    extra={
                        "goal_id": goal.goal_id,
                        "expected_version": goal.version,
                        "stored_version": current.version,
                    },
                )
                raise Conflict(
                    f"Goal {goal.goal_id} was modified concurrently; reload and retry",
                    goal_id=goal.goal_id,
                )
            stored = goal.model_copy(update={"version": goal.version + 1})
            goals[stored.goal_id] = stored
            self._save_unlocked(goals)
            return stored
