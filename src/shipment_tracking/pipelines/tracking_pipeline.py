from __future__ import annotations

import logging
from typing import Any, Optional

from shipment_tracking.api.normalize import normalize
from shipment_tracking.io.orders import OrderNotFound
from shipment_tracking.models.response import (
    STATUS_ERROR,
    STATUS_NOT_FOUND,
    STATUS_SUCCESS,
    STATUS_TRACKING_NOT_GENERATED,
    STATUS_TRACKING_SYSTEM_ERROR,
    TrackingResponse,
)
from shipment_tracking.rules.courier_selector import select_best
from shipment_tracking.rules.policy import DEFAULT_POLICY, SelectionPolicy


class TrackingPipeline:
    """Order id -> tracking number -> raw 17TRACK items -> one courier report.

    `orders` must provide lookup(order_id) (raising OrderNotFound for unknown
    ids) and `aggregator` must provide fetch_raw(tracking_number).
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        orders: Optional[Any] = None,
        aggregator: Any,
        policy: SelectionPolicy = DEFAULT_POLICY,
    ) -> None:
        self.logger = logger or logging.getLogger("shipment_tracking.pipelines")
        self.orders = orders
        self.aggregator = aggregator
        self.policy = policy

    def track_order(self, order_id: Optional[str]) -> TrackingResponse:
        order_id = (order_id or "").strip()
        if not order_id:
            return TrackingResponse.failure(STATUS_ERROR, message="Order ID is required")
        if self.orders is None:
            raise RuntimeError("TrackingPipeline has no order store configured")

        self.logger.info("Tracking request for order %s", order_id)
        try:
            tracking_number = self.orders.lookup(order_id)
        except OrderNotFound:
            self.logger.info("Order %s not found", order_id)
            return TrackingResponse.failure(STATUS_NOT_FOUND, order_id=order_id)

        if not tracking_number:
            self.logger.info("Order %s has no tracking number yet", order_id)
            return TrackingResponse.failure(STATUS_TRACKING_NOT_GENERATED, order_id=order_id)

        return self.track_number(tracking_number, order_id=order_id)

    def track_number(self, tracking_number: str, *, order_id: Optional[str] = None) -> TrackingResponse:
        tracking_number = (tracking_number or "").strip()
        ctx = {"order_id": order_id, "tracking_number": tracking_number or None}
        if not tracking_number:
            return TrackingResponse.failure(
                STATUS_ERROR, message="Tracking number is required", **ctx)

        try:
            raw = self.aggregator.fetch_raw(tracking_number)
        except Exception as e:
            self.logger.exception("Aggregator failed for %s: %s", tracking_number, e)
            return TrackingResponse.failure(STATUS_ERROR, **ctx)

        reports = normalize(raw)
        if not reports:
            self.logger.warning("No usable tracking data for %s", tracking_number)
            return TrackingResponse.failure(STATUS_TRACKING_SYSTEM_ERROR, **ctx)

        best = select_best(reports, tracking_number, policy=self.policy)
        if best is None:
            self.logger.warning("No courier report selected for %s", tracking_number)
            return TrackingResponse.failure(
                STATUS_TRACKING_SYSTEM_ERROR, candidates=tuple(reports), **ctx)

        self.logger.info("Selected %s for %s from %d report(s): %s",
                         best.courier_name, tracking_number, len(reports), best.latest_status_text)
        return TrackingResponse(
            status=STATUS_SUCCESS,
            report=best,
            candidates=tuple(reports),
            **ctx,
        )
