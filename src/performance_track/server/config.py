"""Configuration for the REST server."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from performance_track.config import WorkflowSettings


class ServerSettings(WorkflowSettings):
    """Workflow settings plus HTTP and background-sweep concerns."""

    host: str = Field(default="127.0.0.1", validation_alias="PT_HOST")
    port: int = Field(default=8000, validation_alias="PT_PORT", ge=1, le=65535)

    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="PT_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    reminder_sweep_enabled: bool = Field(
        default=False,
        validation_alias="PT_REMINDER_SWEEP_ENABLED",
        description="If true, the server runs the reminder sweeper on a background thread.",
    )
    reminder_sweep_interval_seconds: float = Field(
        default=3600.0,
        validation_alias="PT_REMINDER_SWEEP_INTERVAL_SECONDS",
        description="Seconds between reminder sweeps when enabled.",
        gt=0,
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
