"""Performance Track.

Goal lifecycle backend for employee performance management:
- goal workflow engine with manager approval and evidence verification
- JSON-file backed goal, notification, audit and review-cycle stores
- structured logging and settings loaded from `.env`
- FastAPI adapter and a small CLI
"""

__version__ = "0.1.0"

from performance_track.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
