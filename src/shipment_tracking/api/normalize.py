# src/shipment_tracking/api/normalize.py
from __future__ import annotations

import enum
import logging
import warnings
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from shipment_tracking.models import CourierReport, TrackingEvent

logger = logging.getLogger("shipment_tracking.api.normalize")

UNKNOWN_CARRIER = "Unknown Carrier"
STATUS_UNAVAILABLE = "Status unavailable"

# Lookup order for an event timestamp: first present and parsable wins.
TIMESTAMP_FIELDS: tuple[str, ...] = ("time_utc", "time_iso", "a", "z")
# Lookup order for the string shown to users.
DISPLAY_TIME_FIELDS: tuple[str, ...] = ("time_iso", "time_utc", "a", "z")
STATUS_FIELDS: tuple[str, ...] = ("description", "z")
LOCATION_FIELDS: tuple[str, ...] = ("location", "c")

# 17TRACK v2 reports latest_status.status by name; legacy payloads use numbers.
_STATUS_NAME_CODES: Dict[str, int] = {
    "notfound": 0,
    "inforeceived": 10,
    "intransit": 10,
    "expired": 20,
    "availableforpickup": 30,
    "outfordelivery": 30,
    "deliveryfailure": 35,
    "undelivered": 35,
    "delivered": 40,
    "exception": 50,
    "alert": 50,
}

# Strings pandas would happily turn into the current time.
_RELATIVE_DATE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})


class PayloadShape(enum.Enum):
    CURRENT = "current"  # track_info.tracking.providers[0]
    LEGACY = "legacy"    # track.w1 / track.z1 / track.e


@dataclass(frozen=True)
class ItemView:
    """One raw aggregator item, resolved once into the fields we consume."""
    shape: PayloadShape
    tracking_number: Optional[str]
    provider: Dict[str, Any]
    legacy_carrier: Dict[str, Any]
    raw_events: List[Any]
    raw_status: Any


# ---- Small accessors ---------------------------------------------------------


def _dict(v: Any) -> Dict[str, Any]:
    return v if isinstance(v, dict) else {}


def _list(v: Any) -> List[Any]:
    return v if isinstance(v, list) else []


def _first_text(d: Dict[str, Any], keys: Sequence[str]) -> str:
    """First non-blank string value among `keys` (numbers are stringified)."""
    for k in keys:
        v = d.get(k)
        if v is None or isinstance(v, bool):
            continue
        if isinstance(v, (int, float)):
            v = str(v)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return ""


def _is_item_sequence(raw: Any) -> bool:
    return isinstance(raw, (list, tuple))


# ---- Shape resolution --------------------------------------------------------


def resolve_item(item: Any) -> Optional[ItemView]:
    """
    Inspect an item for the two known schema shapes.

    The current shape lives under `track_info`, the legacy one under `track`.
    Within the chosen container both the provider block and the legacy w1/z1
    fields are checked so half-migrated items still resolve.
    """
    if not isinstance(item, dict):
        return None

    if isinstance(item.get("track_info"), dict):
        container = item["track_info"]
    elif isinstance(item.get("track"), dict):
        container = item["track"]
    else:
        return None

    providers = _list(_dict(container.get("tracking")).get("providers"))
    first_provider = _dict(providers[0]) if providers else {}
    provider = _dict(first_provider.get("provider"))
    provider_events = _list(first_provider.get("events"))
    legacy_events = _list(container.get("z1"))

    if provider_events:
        shape, events = PayloadShape.CURRENT, provider_events
    elif legacy_events:
        shape, events = PayloadShape.LEGACY, legacy_events
    elif first_provider or "latest_status" in container:
        shape, events = PayloadShape.CURRENT, []
    else:
        shape, events = PayloadShape.LEGACY, []

    raw_status = _dict(container.get("latest_status")).get("status")
    if raw_status is None:
        raw_status = container.get("e")

    tn = item.get("number")
    return ItemView(
        shape=shape,
        tracking_number=str(tn) if tn not in (None, "") else None,
        provider=provider,
        legacy_carrier=_dict(container.get("w1")),
        raw_events=events,
        raw_status=raw_status,
    )


# ---- Field resolution --------------------------------------------------------


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an aggregator timestamp into an aware UTC datetime.
    Naive values are taken as UTC. Returns None when the value does not parse.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text.lower() in _RELATIVE_DATE_WORDS:
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(text, utc=True, errors="coerce")
            if pd.isna(ts):
                return None
            return ts.to_pydatetime()
    except (ValueError, TypeError, OverflowError):
        return None


def resolve_event(raw_event: Dict[str, Any]) -> TrackingEvent:
    occurred_at: Optional[datetime] = None
    for k in TIMESTAMP_FIELDS:
        occurred_at = parse_timestamp(raw_event.get(k))
        if occurred_at is not None:
            break

    return TrackingEvent(
        occurred_at=occurred_at,
        display_time=_first_text(raw_event, DISPLAY_TIME_FIELDS),
        status_text=_first_text(raw_event, STATUS_FIELDS) or STATUS_UNAVAILABLE,
        location=_first_text(raw_event, LOCATION_FIELDS),
    )


def sort_events(events: Sequence[TrackingEvent]) -> List[TrackingEvent]:
    """Most recent first; undated events after dated ones, input order kept."""
    dated = [e for e in events if e.occurred_at is not None]
    undated = [e for e in events if e.occurred_at is None]
    # sorted() is stable under reverse=True as well
    dated = sorted(dated, key=lambda e: e.occurred_at, reverse=True)
    return dated + undated


def _courier_identity(view: ItemView) -> tuple[str, Optional[str]]:
    name = (
        _first_text(view.provider, ("alias", "name"))
        or _first_text(view.legacy_carrier, ("wname",))
        or UNKNOWN_CARRIER
    )
    code = (
        _first_text(view.provider, ("key",))
        or _first_text(view.legacy_carrier, ("wcode",))
        or None
    )
    return name, code


def _status_code(raw: Any) -> int:
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    if isinstance(raw, str):
        s = raw.strip()
        try:
            return int(s)
        except ValueError:
            return _STATUS_NAME_CODES.get(s.replace("_", "").lower(), 0)
    return 0


# ---- Public API --------------------------------------------------------------


def normalize_item(item: Any) -> Optional[CourierReport]:
    """Normalize one raw item; None when it carries no usable events."""
    view = resolve_item(item)
    if view is None:
        logger.debug("Skipping item without track_info/track: %r",
                     _dict(item).get("number"))
        return None

    events = [resolve_event(ev) for ev in view.raw_events if isinstance(ev, dict)]
    if not events:
        logger.debug("No tracking events for: %s", view.tracking_number)
        return None

    name, code = _courier_identity(view)
    return CourierReport.from_events(
        sort_events(events),
        courier_name=name,
        courier_code=code,
        raw_status_code=_status_code(view.raw_status),
        tracking_number=view.tracking_number,
    )


def normalize(raw: Any) -> List[CourierReport]:
    """
    Convert a raw 17TRACK payload (sequence of per-carrier items) into
    CourierReports, in input order.

    Absent, empty or non-sequence payloads yield []. Malformed items are skipped.
    """
    if not _is_item_sequence(raw) or not raw:
        return []

    reports: List[CourierReport] = []
    for item in raw:
        report = normalize_item(item)
        if report is not None:
            reports.append(report)

    logger.debug("Normalized %d of %d item(s)", len(reports), len(raw))
    return reports
