import logging

import pytest
import requests

from shipment_tracking.api.track17 import Track17Client
from shipment_tracking.io.orders import OrderNotFound
from shipment_tracking.pipelines.tracking_pipeline import TrackingPipeline
from shipment_tracking.rules.policy import SelectionPolicy


def _current(number, carrier, events):
    return {"number": number, "track_info": {
        "latest_status": {"status": "InTransit"},
        "tracking": {"providers": [{"provider": {"alias": carrier, "key": 1}, "events": events}]},
    }}


class FakeOrders:
    def __init__(self, mapping):
        self.mapping = mapping

    def lookup(self, order_id):
        if order_id not in self.mapping:
            raise OrderNotFound(order_id)
        return self.mapping[order_id]


class FakeAggregator:
    def __init__(self, payloads=None, exc=None):
        self.payloads = payloads or {}
        self.exc = exc
        self.calls = []

    def fetch_raw(self, tracking_number):
        self.calls.append(tracking_number)
        if self.exc is not None:
            raise self.exc
        return self.payloads.get(tracking_number)


@pytest.fixture
def logger():
    return logging.getLogger("test.tracking_pipeline")


def test_track_order_success_selects_preferred_courier(logger):
    raw = [
        _current("78841458", "DHL Express", [
            {"time_utc": "2025-10-16T10:30:00Z", "description": "Out for Delivery", "location": "NY"}]),
        _current("78841458", "Yuansheng Ancheng", [
            {"time_utc": "2025-10-08T06:42:00Z", "time_iso": "2025-10-08 06:42",
             "description": "Estimated Time For Flight On 11th OCT", "location": "HONGKONG"}]),
    ]
    agg = FakeAggregator({"78841458": raw})
    pipeline = TrackingPipeline(logger, orders=FakeOrders({"FLY1": "78841458"}), aggregator=agg)

    resp = pipeline.track_order(" FLY1 ")

    assert resp.ok
    assert agg.calls == ["78841458"]
    assert resp.report.courier_name == "Yuansheng Ancheng"
    assert len(resp.candidates) == 2
    d = resp.to_dict()
    assert d["orderId"] == "FLY1"
    assert d["trackingNumber"] == "78841458"
    assert d["lastUpdated"] == "2025-10-08 06:42"
    assert d["history"][0]["location"] == "HONGKONG"


def test_blank_order_id_is_an_error(logger):
    pipeline = TrackingPipeline(logger, orders=FakeOrders({}), aggregator=FakeAggregator())
    resp = pipeline.track_order("   ")
    assert resp.status == "error"
    assert resp.message == "Order ID is required"


def test_unknown_order_is_not_found(logger):
    agg = FakeAggregator()
    pipeline = TrackingPipeline(logger, orders=FakeOrders({}), aggregator=agg)
    resp = pipeline.track_order("FLY404")
    assert resp.status == "not_found"
    assert agg.calls == []


def test_order_without_tracking_number(logger):
    pipeline = TrackingPipeline(logger, orders=FakeOrders({"FLY2": None}), aggregator=FakeAggregator())
    resp = pipeline.track_order("FLY2")
    assert resp.status == "tracking_not_generated"
    assert resp.order_id == "FLY2"


@pytest.mark.parametrize("payload", [None, [], {"unexpected": True},
                                     [_current("TN", "DHL", [])]])
def test_no_usable_data_is_tracking_system_error(logger, payload):
    pipeline = TrackingPipeline(logger, aggregator=FakeAggregator({"TN": payload}))
    resp = pipeline.track_number("TN")
    assert resp.status == "tracking_system_error"
    assert resp.tracking_number == "TN"
    assert resp.report is None


def test_aggregator_exception_is_error(logger):
    pipeline = TrackingPipeline(logger, aggregator=FakeAggregator(exc=RuntimeError("boom")))
    resp = pipeline.track_number("TN")
    assert resp.status == "error"
    assert not resp.ok


def test_policy_is_passed_to_selection(logger):
    raw = [
        _current("TN", "Yuansheng Ancheng", [{"time_utc": "2025-10-08T00:00:00Z", "description": "In Transit"}]),
        _current("TN", "DHL Express", [{"time_utc": "2025-10-08T02:00:00Z", "description": "Delivered"}]),
    ]
    agg = FakeAggregator({"TN": raw})

    default = TrackingPipeline(logger, aggregator=agg).track_number("TN")
    relaxed = TrackingPipeline(
        logger, aggregator=agg, policy=SelectionPolicy(preferred_courier=None)).track_number("TN")

    assert default.report.courier_name == "Yuansheng Ancheng"
    assert relaxed.report.courier_name == "DHL Express"


def test_track_order_without_order_store_raises(logger):
    pipeline = TrackingPipeline(logger, aggregator=FakeAggregator())
    with pytest.raises(RuntimeError):
        pipeline.track_order("FLY1")


class _FailingTransport:
    def __init__(self):
        self.calls = 0

    def post(self, url, *, headers=None, json=None):
        self.calls += 1
        raise requests.ConnectionError("17TRACK unreachable")


def test_live_client_failure_on_final_query_is_error(logger):
    transport = _FailingTransport()
    client = Track17Client("secret", transport=transport, sleep=lambda s: None)
    pipeline = TrackingPipeline(logger, orders=FakeOrders({"FLY1": "78841458"}), aggregator=client)

    resp = pipeline.track_order("FLY1")

    assert resp.status == "error"
    assert resp.tracking_number == "78841458"
    assert transport.calls == 3
