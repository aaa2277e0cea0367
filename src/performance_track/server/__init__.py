"""FastAPI server adapter for performance-track.

This module exposes a REST API over the goal workflow engine.

Design intent:
- Keep business logic in `performance_track.workflow.*`
- Keep server-specific concerns (routing, identity headers, CORS, background sweeps) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from performance_track.server.app import create_app
