"""Local JSON persistence of per-subscription read markers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .models import ReadState, parse_timestamp

LOGGER = logging.getLogger(__name__)


class ReadStateStore:
    """JSON-backed store of ``ReadState`` keyed by subscription id."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as exc:
            LOGGER.warning("Could not parse state file %s: %s", self.path, exc)
            return
        if not isinstance(data, dict):
            LOGGER.warning("Ignoring state file %s: expected an object", self.path)
            return
        self._data = data

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2, sort_keys=True))

    def get(self, subscription_id: str) -> ReadState:
        record = self._data.get(subscription_id) or {}
        last_read = record.get("last_read_at")
        return ReadState(
            subscription_id=subscription_id,
            last_read_at=parse_timestamp(last_read) if last_read else None,
            read_guids=frozenset(record.get("read_guids") or ()),
        )

    def put(self, state: ReadState) -> None:
        self._data[state.subscription_id] = {
            "last_read_at": state.last_read_at.isoformat() if state.last_read_at else None,
            "read_guids": sorted(state.read_guids),
        }

    def all(self) -> Dict[str, ReadState]:
        return {sub_id: self.get(sub_id) for sub_id in self._data}


__all__ = ["ReadStateStore"]
