# src/shipment_tracking/api/client.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Protocol
import json

from .track17 import extract_items


class TrackingAggregator(Protocol):
    def fetch_raw(self, tracking_number: str) -> Any:
        ...


@dataclass
class ReplayClient:
    """Replay client backed by a single JSON file of recorded 17TRACK items.

    The file may hold a full gettrackinfo response (`{"data": {"accepted": [...]}}`),
    a list of items, or a single item. Items are indexed by their `number`;
    several items (one per carrier) may share a number.
    """

    replay_file: Path
    _index: dict[str, List[Any]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.replay_file = Path(self.replay_file)
        if not self.replay_file.exists():
            raise ValueError(f"Replay file does not exist: {self.replay_file}")
        if not self.replay_file.is_file():
            raise ValueError(f"Replay path is not a file: {self.replay_file}")

        raw = json.loads(self.replay_file.read_text(encoding="utf-8"))
        if isinstance(raw, dict) and "data" in raw:
            entries = extract_items(raw)
        elif isinstance(raw, list):
            entries = raw
        else:
            entries = [raw]

        for entry in entries:
            if not isinstance(entry, dict):
                continue
            tn = entry.get("number")
            if tn in (None, ""):
                continue
            self._index.setdefault(str(tn).strip(), []).append(entry)

    @property
    def tracking_numbers(self) -> List[str]:
        return list(self._index)

    def fetch_raw(self, tracking_number: str) -> List[Any]:
        return list(self._index.get(str(tracking_number).strip(), []))
