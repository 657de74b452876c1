from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class TrackingEvent:
    # None marks a timestamp that could not be parsed
    occurred_at: Optional[datetime]
    display_time: str
    status_text: str
    location: str

    def to_history_entry(self) -> dict[str, str]:
        """Shape used by the public tracking response."""
        return {
            "date": self.display_time or "",
            "status": self.status_text or "",
            "location": self.location or "",
        }


@dataclass(frozen=True)
class CourierReport:
    # identity
    courier_name: str
    courier_code: Optional[str]

    # snapshot of history[0]
    latest_status_text: str
    latest_status_at: Optional[datetime]
    latest_location: str

    # most recent first
    history: tuple[TrackingEvent, ...]
    raw_status_code: int = 0

    tracking_number: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.history:
            raise ValueError("CourierReport requires at least one event")

    @classmethod
    def from_events(
        cls,
        events: Sequence[TrackingEvent],
        *,
        courier_name: str,
        courier_code: Optional[str] = None,
        raw_status_code: int = 0,
        tracking_number: Optional[str] = None,
    ) -> "CourierReport":
        """Build a report from already-sorted events (most recent first)."""
        history = tuple(events)
        if not history:
            raise ValueError("CourierReport requires at least one event")
        latest = history[0]
        return cls(
            courier_name=courier_name,
            courier_code=courier_code,
            latest_status_text=latest.status_text,
            latest_status_at=latest.occurred_at,
            latest_location=latest.location,
            history=history,
            raw_status_code=raw_status_code,
            tracking_number=tracking_number,
        )

    @property
    def latest_display_time(self) -> str:
        return self.history[0].display_time

    def to_dict(self) -> dict[str, Any]:
        """Convenience for logging/tests."""
        return asdict(self)
