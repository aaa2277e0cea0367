from __future__ import annotations

from collections.abc import Iterator, Sequence

from .models import ProgressEntry

NO_PROGRESS_TEXT = "No progress updates yet"


class ProgressLog:
    """Read-only view over a goal's progress entries.

    Iteration is lazy and can be restarted; each ``iter()`` walks the same
    snapshot from the first entry in insertion order.
    """

    def __init__(self, entries: Sequence[ProgressEntry]) -> None:
        self._entries = tuple(entries)

    def __iter__(self) -> Iterator[ProgressEntry]:
        for entry in self._entries:
            yield entry

    def __len__(self) -> int:
        return len(self._entries)


def render_progress_text(entries: Sequence[ProgressEntry] | ProgressLog) -> str:
    """One ``"<timestamp>: <note>"`` line per entry, for clients expecting plain text."""

    lines = [f"{entry.timestamp.isoformat()}: {entry.note}" for entry in entries]
    if not lines:
        return NO_PROGRESS_TEXT
    return "\n".join(lines)
