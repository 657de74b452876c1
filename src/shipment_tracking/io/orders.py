from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

ORDER_ID_COLUMN = "order_id"
TRACKING_COLUMN = "logistics_no"

# Header spellings seen in exported order sheets
_COLUMN_ALIASES: Dict[str, str] = {
    "order_id": ORDER_ID_COLUMN,
    "order id": ORDER_ID_COLUMN,
    "orderid": ORDER_ID_COLUMN,
    "logistics_no": TRACKING_COLUMN,
    "logistics no": TRACKING_COLUMN,
    "tracking number": TRACKING_COLUMN,
    "tracking_number": TRACKING_COLUMN,
}


class OrderNotFound(LookupError):
    """Raised when an order id is not present in the order book."""


def _is_blank(val: Any) -> bool:
    """True if value is None/NaN/empty/"nan"/"none" (case-insensitive)."""
    if val is None:
        return True
    if isinstance(val, float) and np.isnan(val):
        return True
    if val is pd.NA or val is pd.NaT:
        return True
    s = str(val).strip()
    return s == "" or s.lower() in {"nan", "none"}


def _canonical_columns(df: pd.DataFrame) -> pd.DataFrame:
    rename = {}
    for col in df.columns:
        key = " ".join(str(col).strip().lower().split())
        if key in _COLUMN_ALIASES:
            rename[col] = _COLUMN_ALIASES[key]
    return df.rename(columns=rename)


class OrderBook:
    """Order id -> carrier tracking number lookup over an exported order sheet."""

    def __init__(self, df: pd.DataFrame) -> None:
        df = _canonical_columns(df)
        missing = [c for c in (ORDER_ID_COLUMN, TRACKING_COLUMN) if c not in df.columns]
        if missing:
            raise ValueError(f"Order sheet is missing column(s): {', '.join(missing)}")

        index: Dict[str, Optional[str]] = {}
        for order_id, tn in zip(df[ORDER_ID_COLUMN], df[TRACKING_COLUMN]):
            if _is_blank(order_id):
                continue
            key = str(order_id).strip()
            value = None if _is_blank(tn) else str(tn).strip()
            # later rows win unless they would erase a known tracking number
            if value is not None or key not in index:
                index[key] = value
        self._index = index

    @classmethod
    def from_path(cls, path: Path | str) -> "OrderBook":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(p)
        # keep ids/tracking numbers as text (leading zeros, long digits)
        if p.suffix.lower() == ".csv":
            df = pd.read_csv(p, dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(p, dtype=str, engine="openpyxl")
        return cls(df)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, order_id: object) -> bool:
        return str(order_id).strip() in self._index

    def lookup(self, order_id: str) -> Optional[str]:
        """
        Tracking number for `order_id`; None when the order exists but has no
        tracking number yet. Raises OrderNotFound for unknown orders.
        """
        key = str(order_id or "").strip()
        if key not in self._index:
            raise OrderNotFound(key)
        return self._index[key]
