"""Errors raised by the goal workflow.

Each error is scoped to a single request. The HTTP layer maps ``code`` onto a
status; the CLI maps it onto an exit code.
"""

from __future__ import annotations


class WorkflowError(Exception):
    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, *, goal_id: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.goal_id = goal_id


class GoalNotFound(WorkflowError):
    code = "NOT_FOUND"


class Forbidden(WorkflowError):
    code = "FORBIDDEN"


class InvalidTransition(WorkflowError):
    code = "INVALID_TRANSITION"


class ValidationFailed(WorkflowError):
    code = "VALIDATION_FAILED"


class Conflict(WorkflowError):
    """A concurrent transition committed first; nothing was written."""

    code = "CONFLICT"
