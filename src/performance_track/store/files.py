from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def load_json_list(path: Path) -> list[dict[str, object]]:
    """Read a JSON list of objects; a missing or corrupt file reads as empty."""

    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning(
            "State file is not valid JSON; treating as empty", extra={"path": str(path)}
        )
        return []
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(
            "State file has unexpected shape; treating as empty", extra={"path": str(path)}
        )
        return []
    return [item for item in raw if isinstance(item, dict)]


def save_json_list(path: Path, items: Sequence[BaseModel]) -> None:
    """Write models as a JSON list, replacing the file in one step."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [m.model_dump(mode="json") for m in items]
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp, path)
