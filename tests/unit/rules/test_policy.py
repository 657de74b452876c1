import pytest

from shipment_tracking.rules.policy import DEFAULT_POLICY, STAGE_SCORES, KnownCourier


@pytest.mark.parametrize(
    "status, score",
    [
        ("Delivered - Signed by Customer", 100),
        ("Out for Delivery", 90),
        ("Available for pickup", 85),
        ("Arrived at sorting center", 80),
        # "delivery" is checked before "arrived"
        ("Arrived at Delivery Facility", 90),
        ("Customs Cleared", 75),
        ("In customs", 70),
        ("IN TRANSIT", 60),
        ("Departed from Origin", 55),
        ("Estimated Time For Flight On 11th OCT", 50),
        ("Awaiting collection", 40),
        ("Flight Delayed", 50),
        ("Shipment delayed", 35),
        ("Package Received at Warehouse", 30),
        ("Registered", 10),
        ("Label printed", 0),
        ("", 0),
        (None, 0),
    ],
)
def test_stage_score(status, score):
    assert DEFAULT_POLICY.stage_score(status) == score


def test_first_table_entry_wins_not_best_match():
    # "info received" sits below "received" in the table
    assert DEFAULT_POLICY.stage_score("Info Received") == 30


def test_stage_table_bounds():
    scores = [s for _, s in STAGE_SCORES]
    assert scores[0] == 100 and scores[-1] == 10


def test_known_courier_matching():
    assert KnownCourier.JYTD.matches("捷易通达")
    assert KnownCourier.JYTD.matches("JieTong Express")
    assert not KnownCourier.JYTD.matches("Yuansheng Ancheng")
    assert KnownCourier.YUANSHENG_ANCHENG.matches("yuansheng")
    assert not KnownCourier.YUANSHENG_ANCHENG.matches("")
    assert not KnownCourier.YUANSHENG_ANCHENG.matches(None)


def test_override_number_detection():
    assert DEFAULT_POLICY.is_override_number("JYDIL000123")
    assert DEFAULT_POLICY.is_override_number("jydil000123")
    assert not DEFAULT_POLICY.is_override_number("XJYDIL")
    assert not DEFAULT_POLICY.is_override_number(None)


def test_override_number_accepts_non_string_numbers():
    assert not DEFAULT_POLICY.is_override_number(12345)
    assert not DEFAULT_POLICY.is_override_number(0)
