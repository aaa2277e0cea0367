"""Goal lifecycle workflow.

This package holds the explicit, first-class pieces of the goal workflow:
- commands (one tagged variant per workflow action)
- the authorization table (action -> roles -> ownership)
- the pure transition function and its evidence sub-flow
- outbound notification/audit events and their post-commit dispatcher
- the engine tying them to a goal store
- the read-only reminder sweeper
"""

from performance_track.workflow.engine import GoalWorkflowEngine
from performance_track.workflow.errors import (
    Conflict,
    Forbidden,
    GoalNotFound,
    InvalidTransition,
    ValidationFailed,
    WorkflowError,
)

__all__ = [
    "Conflict",
    "Forbidden",
    "GoalNotFound",
    "GoalWorkflowEngine",
    "InvalidTransition",
    "ValidationFailed",
    "WorkflowError",
]
