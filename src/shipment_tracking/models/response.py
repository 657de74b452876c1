from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional

from .tracking import CourierReport

# Outcome labels returned to callers of the tracking pipeline
STATUS_SUCCESS = "success"
STATUS_NOT_FOUND = "not_found"
STATUS_TRACKING_NOT_GENERATED = "tracking_not_generated"
STATUS_TRACKING_SYSTEM_ERROR = "tracking_system_error"
STATUS_ERROR = "error"

MESSAGES: dict[str, str] = {
    STATUS_NOT_FOUND: (
        "We couldn't find your order ID in our system. "
        "Please double-check your order number or try again later."
    ),
    STATUS_TRACKING_NOT_GENERATED: (
        "Your order was found, but the tracking number has not been generated yet. "
        "Please check back in a few days."
    ),
    STATUS_TRACKING_SYSTEM_ERROR: (
        "We found your tracking number, but the shipment details are temporarily "
        "unavailable. Please try again later."
    ),
    STATUS_ERROR: (
        "An error occurred while processing your request. Please try again later."
    ),
}


@dataclass(frozen=True)
class TrackingResponse:
    status: str
    order_id: Optional[str] = None
    tracking_number: Optional[str] = None
    message: Optional[str] = None

    # the selected report on success
    report: Optional[CourierReport] = None
    # every normalized report the selection considered
    candidates: tuple[CourierReport, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SUCCESS

    @classmethod
    def failure(cls, status: str, *, message: Optional[str] = None, **kwargs) -> "TrackingResponse":
        return cls(status=status, message=message or MESSAGES.get(status), **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Public JSON shape (camelCase keys, empty values omitted)."""
        out: dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "orderId": self.order_id,
            "trackingNumber": self.tracking_number,
        }
        r = self.report
        if r is not None:
            out.update({
                "courier": r.courier_name,
                "courierCode": r.courier_code,
                "latestStatus": r.latest_status_text,
                "lastUpdated": r.latest_display_time,
                "location": r.latest_location,
                "history": [ev.to_history_entry() for ev in r.history],
            })
        return {k: v for k, v in out.items() if v is not None}
