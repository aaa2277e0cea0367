"""Request identity.

Authentication happens upstream (gateway or auth middleware), which forwards
the resolved user as ``X-User-Id`` and ``X-User-Role``. This module only
parses those headers; it never verifies credentials.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException

from performance_track.workflow.models import Actor, UserRole


def current_actor(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing identity headers")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header") from None
    try:
        role = UserRole(x_user_role.strip().upper())
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Role header") from None
    return Actor(user_id=user_id, role=role)


CurrentActor = Annotated[Actor, Depends(current_actor)]
