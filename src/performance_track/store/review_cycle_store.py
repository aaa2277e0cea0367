"""Review-cycle evidence policy.

Review cycles are managed elsewhere; this store only keeps the flags the goal
workflow consumes. A goal outside any known cycle falls back to the configured
default.
"""

from __future__ import annotations

import threading
from datetime import date
from pathlib import Path

from pydantic import BaseModel

from performance_track.store.files import load_json_list, save_json_list


class ReviewCycleRecord(BaseModel):
    cycle_id: int
    title: str = ""
    start_date: date | None = None
    end_date: date | None = None
    evidence_required: bool = True
    requires_completion_approval: bool = True


class ReviewCycleStore:
    def __init__(self, path: Path, *, evidence_required_default: bool = True) -> None:
        self._path = path
        self._default = evidence_required_default
        self._lock = threading.Lock()

    def _load_unlocked(self) -> dict[int, ReviewCycleRecord]:
        records = [ReviewCycleRecord.model_validate(item) for item in load_json_list(self._path)]
        return {r.cycle_id: r for r in records}

    def get(self, cycle_id: int) -> ReviewCycleRecord | None:
        with self._lock:
            return self._load_unlocked().get(cycle_id)

    def upsert(self, record: ReviewCycleRecord) -> ReviewCycleRecord:
        with self._lock:
            cycles = self._load_unlocked()
            cycles[record.cycle_id] = record
            save_json_list(self._path, [cycles[k] for k in sorted(cycles)])
            return record

    def set_evidence_required(self, cycle_id: int, required: bool) -> ReviewCycleRecord:
        existing = self.get(cycle_id) or ReviewCycleRecord(cycle_id=cycle_id)
        return self.upsert(existing.model_copy(update={"evidence_required": required}))

    def requires_evidence(self, cycle_id: int | None) -> bool:
        if cycle_id is None:
            return self._default
        record = self.get(cycle_id)
        if record is None:
            return self._default
        return record.evidence_required
