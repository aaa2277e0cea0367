"""Post-commit delivery of workflow side effects.

The engine hands over events only after the goal is committed. Delivery is
best-effort: a failing notifier or audit sink is logged and never turns into a
workflow error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Executor
from datetime import datetime
from typing import Protocol

from .events import AuditRequest, NotificationRequest, OutboundEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def notify(
        self,
        user_id: int,
        event_type: str,
        message: str,
        entity_type: str | None,
        entity_id: int | None,
        priority: str | None = None,
        action_required: bool = False,
    ) -> object: ...


class AuditRecorder(Protocol):
    def record(
        self,
        actor_id: int,
        action: str,
        entity_type: str | None,
        entity_id: int | None,
        details: str,
        timestamp: datetime,
    ) -> object: ...


class EventDispatcher:
    """Deliver outbound events to the notification and audit collaborators.

    With an ``executor`` delivery happens off the request thread and the
    caller never waits for it. Without one, events are delivered inline,
    which keeps tests and the CLI deterministic.
    """

    def __init__(
        self,
        *,
        notifier: NotificationDispatcher,
        auditor: AuditRecorder,
        executor: Executor | None = None,
    ) -> None:
        self._notifier = notifier
        self._auditor = auditor
        self._executor = executor

    def dispatch(self, events: Iterable[OutboundEvent]) -> None:
        batch = tuple(events)
        if not batch:
            return
        if self._executor is None:
            self._deliver_all(batch)
            return
        try:
            self._executor.submit(self._deliver_all, batch)
        except RuntimeError:
            # Executor already shut down; the goal is committed, so deliver here.
            logger.exception(
                "Dispatch executor unavailable, delivering inline",
                extra={"events": len(batch)},
            )
            self._deliver_all(batch)

    def _deliver_all(self, events: tuple[OutboundEvent, ...]) -> None:
        for event in events:
            try:
                self._deliver(event)
            except Exception:
                logger.exception(
                    "Failed to deliver workflow event",
                    extra={"event": type(event).__name__, "entity_id": event.entity_id},
                )

    def _deliver(self, event: OutboundEvent) -> None:
        if isinstance(event, NotificationRequest):
            self._notifier.notify(
                event.user_id,
                event.event_type.value,
                event.message,
                event.entity_type,
                event.entity_id,
                priority=event.priority,
                action_required=event.action_required,
            )
        elif isinstance(event, AuditRequest):
            self._auditor.record(
                event.actor_id,
                event.action,
                event.entity_type,
                event.entity_id,
                event.details,
                event.timestamp,
            )
