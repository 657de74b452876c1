# src/shipment_tracking/rules/courier_selector.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from shipment_tracking.models import CourierReport
from shipment_tracking.rules.policy import DEFAULT_POLICY, KnownCourier, SelectionPolicy

logger = logging.getLogger("shipment_tracking.rules.courier_selector")


def _first_named(reports: Sequence[CourierReport], courier: KnownCourier) -> Optional[CourierReport]:
    for r in reports:
        if courier.matches(r.courier_name):
            return r
    return None


def _prefer_candidate(
    best: CourierReport,
    candidate: CourierReport,
    policy: SelectionPolicy,
) -> bool:
    """
    True when `candidate` should replace the running best.

    Within the contemporaneous window the strictly higher stage score wins;
    outside it the later timestamp wins. An undated report never displaces a
    dated one, and a dated report always displaces an undated one.
    """
    best_at: Optional[datetime] = best.latest_status_at
    cand_at: Optional[datetime] = candidate.latest_status_at

    if cand_at is None and best_at is not None:
        return False
    if best_at is not None and cand_at is not None:
        if abs(cand_at - best_at) > policy.contemporaneous_window:
            return cand_at > best_at
    elif best_at is None and cand_at is not None:
        return True

    return policy.stage_score(candidate.latest_status_text) > policy.stage_score(best.latest_status_text)


def select_by_recency_and_stage(
    reports: Sequence[CourierReport],
    policy: SelectionPolicy = DEFAULT_POLICY,
) -> Optional[CourierReport]:
    best: Optional[CourierReport] = None
    for r in reports:
        if not r.history:
            continue
        if best is None or _prefer_candidate(best, r, policy):
            best = r
    return best


def select_best(
    reports: Optional[Sequence[CourierReport]],
    queried_tracking_number: Optional[Any] = None,
    *,
    policy: SelectionPolicy = DEFAULT_POLICY,
) -> Optional[CourierReport]:
    """
    Pick the authoritative report for a tracking number.

    Precedence (top to bottom):
        override courier   (only for numbers carrying the override prefix)
        preferred courier
        recency/stage heuristic

    Returns one element of `reports` (same object), or None when empty.
    """
    if not reports:
        return None

    if policy.override_courier is not None and policy.is_override_number(queried_tracking_number):
        hit = _first_named(reports, policy.override_courier)
        if hit is not None:
            logger.debug("Override rule selected %s for %s",
                         hit.courier_name, queried_tracking_number)
            return hit

    if policy.preferred_courier is not None:
        hit = _first_named(reports, policy.preferred_courier)
        if hit is not None:
            logger.debug("Preferred-courier rule selected %s", hit.courier_name)
            return hit

    best = select_by_recency_and_stage(reports, policy)
    if best is not None:
        logger.debug("Recency/stage fallback selected %s (%s)",
                     best.courier_name, best.latest_status_text)
    return best
