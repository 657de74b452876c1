from pathlib import Path

import pandas as pd
import pytest

from shipment_tracking.io.orders import OrderBook, OrderNotFound


def _write_csv(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "orders.csv"
    p.write_text(text, encoding="utf-8")
    return p


def test_lookup_from_csv(tmp_path):
    p = _write_csv(tmp_path, "order_id,logistics_no\nFLY1,78841458\nFLY2,\n FLY3 ,00123\n")
    book = OrderBook.from_path(p)

    assert len(book) == 3
    assert book.lookup("FLY1") == "78841458"
    assert book.lookup(" FLY1 ") == "78841458"
    # leading zeros survive because columns are read as text
    assert book.lookup("FLY3") == "00123"
    assert "FLY2" in book


def test_order_without_tracking_number_returns_none(tmp_path):
    p = _write_csv(tmp_path, "order_id,logistics_no\nFLY2,\nFLY4,nan\n")
    book = OrderBook.from_path(p)
    assert book.lookup("FLY2") is None
    assert book.lookup("FLY4") is None


def test_unknown_order_raises(tmp_path):
    book = OrderBook.from_path(_write_csv(tmp_path, "order_id,logistics_no\nFLY1,1\n"))
    with pytest.raises(OrderNotFound):
        book.lookup("FLY999")
    with pytest.raises(LookupError):
        book.lookup("")


def test_lookup_from_xlsx_with_header_aliases(tmp_path):
    p = tmp_path / "orders.xlsx"
    pd.DataFrame({
        "Order ID": ["FLY25090726005462", "FLY2"],
        "Tracking Number": ["78841458", None],
    }).to_excel(p, index=False)

    book = OrderBook.from_path(p)

    assert book.lookup("FLY25090726005462") == "78841458"
    assert book.lookup("FLY2") is None


def test_later_blank_row_does_not_erase_tracking_number():
    df = pd.DataFrame({"order_id": ["FLY1", "FLY1"], "logistics_no": ["TN1", ""]})
    assert OrderBook(df).lookup("FLY1") == "TN1"


def test_missing_columns_and_missing_file(tmp_path):
    with pytest.raises(ValueError):
        OrderBook(pd.DataFrame({"order_id": ["FLY1"]}))
    with pytest.raises(FileNotFoundError):
        OrderBook.from_path(tmp_path / "nope.csv")
