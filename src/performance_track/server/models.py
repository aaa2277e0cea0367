"""Pydantic models for the REST server.

Request bodies use the camelCase field names existing clients already send.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field

from performance_track.workflow.models import GoalCategory, GoalContent, GoalPriority

ResponseStatus = Literal["success", "error"]


class ApiResponse(BaseModel):
    """Envelope shared by every endpoint."""

    status: ResponseStatus = "success"
    msg: str
    data: Any = None
    code: str | None = None


def success(msg: str, data: Any = None) -> ApiResponse:
    return ApiResponse(status="success", msg=msg, data=data)


def error(msg: str, *, code: str | None = None) -> ApiResponse:
    return ApiResponse(status="error", msg=msg, code=code)


class GoalContentRequest(BaseModel):
    title: str
    description: str
    category: GoalCategory = GoalCategory.OTHER
    priority: GoalPriority = GoalPriority.MEDIUM
    startDate: date
    endDate: date

    def to_content(self) -> GoalContent:
        return GoalContent(
            title=self.title,
            description=self.description,
            category=self.category,
            priority=self.priority,
            start_date=self.startDate,
            end_date=self.endDate,
        )


class CreateGoalRequest(GoalContentRequest):
    managerId: int
    cycleId: int | None = None


class RequestChangesRequest(BaseModel):
    comments: str | None = None


class ProgressRequest(BaseModel):
    note: str | None = None


class SubmitCompletionRequest(BaseModel):
    evidenceLink: str | None = None
    linkDescription: str | None = None
    accessInstructions: str | None = None
    completionNotes: str | None = None


class VerifyEvidenceRequest(BaseModel):
    status: str | None = None
    notes: str | None = None


class ReasonRequest(BaseModel):
    reason: str | None = None


class ApproveCompletionRequest(BaseModel):
    managerComments: str | None = None


class ProgressView(BaseModel):
    goalId: int
    entries: list[dict[str, str]] = Field(default_factory=list)
    text: str
