"""Notification inbox persisted as JSON.

Implements the notification dispatcher used by the workflow: every
``notify`` call appends one UNREAD record for the recipient.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from performance_track.store.files import load_json_list, save_json_list


class NotificationStatus(str, Enum):
    UNREAD = "UNREAD"
    READ = "READ"


class NotificationRecord(BaseModel):
    notification_id: int
    user_id: int
    type: str
    message: str
    related_entity_type: str | None = None
    related_entity_id: int | None = None
    status: NotificationStatus = NotificationStatus.UNREAD
    priority: str | None = None
    action_required: bool = False
    created_date: datetime
    read_date: datetime | None = None


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class NotificationStore:
    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[NotificationRecord]:
        return [NotificationRecord.model_validate(item) for item in load_json_list(self._path)]

    def _save_unlocked(self, records: list[NotificationRecord]) -> None:
        save_json_list(self._path, records)

    def notify(
        self,
        user_id: int,
        event_type: str,
        message: str,
        entity_type: str | None,
        entity_id: int | None,
        priority: str | None = None,
        action_required: bool = False,
    ) -> NotificationRecord:
        with self._lock:
            records = self._load_unlocked()
            record = NotificationRecord(
                notification_id=max((r.notification_id for r in records), default=0) + 1,
                user_id=user_id,
                type=event_type,
                message=message,
                related_entity_type=entity_type,
                related_entity_id=entity_id,
                priority=priority,
                action_required=action_required,
                created_date=_utc_now(),
            )
            records.append(record)
            self._save_unlocked(records)
            return record

    def get(self, notification_id: int) -> NotificationRecord | None:
        with self._lock:
            for record in self._load_unlocked():
                if record.notification_id == notification_id:
                    return record
            return None

    def list_for_user(
        self, user_id: int, *, status: NotificationStatus | None = None
    ) -> list[NotificationRecord]:
        """Newest first."""

        with self._lock:
            records = [r for r in self._load_unlocked() if r.user_id == user_id]
        if status is not None:
            records = [r for r in records if r.status == status]
        records.sort(key=lambda r: (r.created_date, r.notification_id), reverse=True)
        return records

    def mark_read(self, notification_id: int) -> NotificationRecord:
        with self._lock:
            records = self._load_unlocked()
            for idx, record in enumerate(records):
                if record.notification_id != notification_id:
                    continue
                if record.status == NotificationStatus.READ:
                    return record
                updated = record.model_copy(
                    update={"status": NotificationStatus.READ, "read_date": _utc_now()}
                )
                records[idx] = updated
                self._save_unlocked(records)
                return updated
            raise KeyError(notification_id)

    def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification of ``user_id`` as read; returns how many changed."""

        with self._lock:
            records = self._load_unlocked()
            now = _utc_now()
            changed = 0
            for idx, record in enumerate(records):
                if record.user_id == user_id and record.status == NotificationStatus.UNREAD:
                    records[idx] = record.model_copy(
                        update={"status": NotificationStatus.READ, "read_date": now}
                    )
                    changed += 1
            if changed:
                self._save_unlocked(records)
            return changed
