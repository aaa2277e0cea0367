"""Configuration for the goal workflow backend.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Variables specific to this project carry a `PT_` prefix so they don't collide
with other services sharing the same environment. `LOG_LEVEL` is left
unprefixed on purpose, matching the usual deployment convention.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkflowSettings(BaseSettings):
    """Settings for the workflow engine, its stores and the reminder sweeper.

    Environment variables:
    - LOG_LEVEL                             (optional)
    - PT_STATE_PATH                         (optional)
    - PT_EVIDENCE_REQUIRED_DEFAULT          (optional)
    - PT_DISPATCH_WORKERS                   (optional)
    - PT_REMINDER_*_DAYS                    (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    state_path: Path = Field(
        default=Path("pt_state"),
        validation_alias="PT_STATE_PATH",
        description="Directory where goals, notifications and audit records are persisted",
    )

    evidence_required_default: bool = Field(
        default=True,
        validation_alias="PT_EVIDENCE_REQUIRED_DEFAULT",
        description=(
            "Whether completion approval requires verified evidence for goals that are not "
            "attached to a known review cycle."
        ),
    )

    dispatch_workers: int = Field(
        default=2,
        validation_alias="PT_DISPATCH_WORKERS",
        description=(
            "Worker threads delivering notifications and audit records after a transition "
            "commits. 0 delivers inline on the request thread."
        ),
        ge=0,
        le=32,
    )

    reminder_pending_approval_days: int = Field(
        default=3,
        validation_alias="PT_REMINDER_PENDING_APPROVAL_DAYS",
        description="Days a new goal may wait for manager approval before a reminder.",
        ge=1,
    )
    reminder_completion_review_days: int = Field(
        default=3,
        validation_alias="PT_REMINDER_COMPLETION_REVIEW_DAYS",
        description="Days a submitted completion may wait for manager review before a reminder.",
        ge=1,
    )
    reminder_changes_requested_days: int = Field(
        default=5,
        validation_alias="PT_REMINDER_CHANGES_REQUESTED_DAYS",
        description="Days an employee may leave requested changes unaddressed before a reminder.",
        ge=1,
    )
    reminder_additional_evidence_days: int = Field(
        default=5,
        validation_alias="PT_REMINDER_ADDITIONAL_EVIDENCE_DAYS",
        description="Days an employee may leave an evidence request unanswered before a reminder.",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def goals_state_file(self) -> Path:
        """Path where goal records are persisted."""

        return self.state_path / "goals.json"

    @property
    def notifications_state_file(self) -> Path:
        return self.state_path / "notifications.json"

    @property
    def audit_state_file(self) -> Path:
        return self.state_path / "audit_log.json"

    @property
    def review_cycles_state_file(self) -> Path:
        return self.state_path / "review_cycles.json"
