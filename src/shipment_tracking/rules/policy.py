from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional


class KnownCourier(enum.Enum):
    """Courier networks named by the selection rules, with their name aliases."""

    JYTD = ("JYTD", "捷易通达", "jietong")
    YUANSHENG_ANCHENG = ("Yuansheng", "Ancheng", "元盛")

    @property
    def aliases(self) -> tuple[str, ...]:
        return self.value

    def matches(self, courier_name: Optional[str]) -> bool:
        """Case-insensitive substring match against any alias."""
        if not courier_name:
            return False
        name = courier_name.casefold()
        return any(alias.casefold() in name for alias in self.aliases)


# Ordered (phrase, score) pairs; the first phrase contained in a status wins,
# so "info received" is shadowed by "received".
STAGE_SCORES: tuple[tuple[str, int], ...] = (
    ("delivered", 100),
    ("delivery", 90),
    ("out for delivery", 90),
    ("available for pickup", 85),
    ("arrived", 80),
    ("customs cleared", 75),
    ("in customs", 70),
    ("in transit", 60),
    ("departed", 55),
    ("flight", 50),
    ("awaiting", 40),
    ("delayed", 35),
    ("received", 30),
    ("info received", 20),
    ("registered", 10),
)

DEFAULT_OVERRIDE_PREFIX = "JYDIL"
DEFAULT_CONTEMPORANEOUS_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class SelectionPolicy:
    """
    Business rules for picking the authoritative courier report.

    - override_prefix/override_courier: tracking numbers with this prefix
      prefer this courier above everything else (None disables the rule)
    - preferred_courier: preferred whenever present (None disables the rule)
    - contemporaneous_window: reports closer than this are ranked by stage
    - stage_scores: ordered phrase table used for the stage ranking
    """

    override_prefix: Optional[str] = DEFAULT_OVERRIDE_PREFIX
    override_courier: Optional[KnownCourier] = KnownCourier.JYTD
    preferred_courier: Optional[KnownCourier] = KnownCourier.YUANSHENG_ANCHENG
    contemporaneous_window: timedelta = DEFAULT_CONTEMPORANEOUS_WINDOW
    stage_scores: tuple[tuple[str, int], ...] = STAGE_SCORES

    def stage_score(self, status_text: Optional[str]) -> int:
        if not status_text:
            return 0
        lowered = status_text.lower()
        for phrase, score in self.stage_scores:
            if phrase in lowered:
                return score
        return 0

    def is_override_number(self, tracking_number: Optional[Any]) -> bool:
        if not tracking_number or not self.override_prefix:
            return False
        return str(tracking_number).upper().startswith(self.override_prefix.upper())


DEFAULT_POLICY = SelectionPolicy()
