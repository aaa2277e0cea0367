"""Append-only audit log persisted as JSON."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from performance_track.store.files import load_json_list, save_json_list


def _as_utc(value: datetime) -> datetime:
    # Query-string bounds without an offset are taken as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AuditRecord(BaseModel):
    audit_id: int
    actor_id: int
    action: str
    details: str
    related_entity_type: str | None = None
    related_entity_id: int | None = None
    status: str = "SUCCESS"
    timestamp: datetime


class AuditStore:
    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    def record(
        self,
        actor_id: int,
        action: str,
        entity_type: str | None,
        entity_id: int | None,
        details: str,
        timestamp: datetime,
    ) -> AuditRecord:
        with self._lock:
            records = [AuditRecord.model_validate(item) for item in load_json_list(self._path)]
            entry = AuditRecord(
                audit_id=max((r.audit_id for r in records), default=0) + 1,
                actor_id=actor_id,
                action=action,
                details=details,
                related_entity_type=entity_type,
                related_entity_id=entity_id,
                timestamp=timestamp,
            )
            records.append(entry)
            save_json_list(self._path, records)
            return entry

    def query(
        self,
        *,
        actor_id: int | None = None,
        action: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        entity_id: int | None = None,
    ) -> list[AuditRecord]:
        """Filtered records, newest first. All filters combine with AND."""

        with self._lock:
            records = [AuditRecord.model_validate(item) for item in load_json_list(self._path)]

        if actor_id is not None:
            records = [r for r in records if r.actor_id == actor_id]
        if action:
            wanted = action.strip().upper()
            records = [r for r in records if r.action == wanted]
        if entity_id is not None:
            records = [r for r in records if r.related_entity_id == entity_id]
        if start is not None:
            lower = _as_utc(start)
            records = [r for r in records if r.timestamp >= lower]
        if end is not None:
            upper = _as_utc(end)
            records = [r for r in records if r.timestamp <= upper]

        records.sort(key=lambda r: (r.timestamp, r.audit_id), reverse=True)
        return records
