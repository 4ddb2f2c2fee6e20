"""Identifier, trend and display helpers."""

import itertools
import threading
import time
from datetime import date, datetime
from uuid import uuid4

from .models import PriceTrend

_id_counter = itertools.count()
_id_lock = threading.Lock()


def generate_id(prefix: str = "id") -> str:
    """Create an identifier like ``txn_1771234567890_1a3f9c2e``.

    The millisecond timestamp keeps ids roughly sortable; the per-process
    counter makes ids unique even when generated within the same millisecond.
    """
    with _id_lock:
        seq = next(_id_counter)
    return f"{prefix}_{time.time_ns() // 1_000_000}_{seq:x}{uuid4().hex[:6]}"


def classify_trend(current_price: float, previous_price: float | None) -> PriceTrend:
    """Compare a price against the previous price paid for the same item.

    Args:
        current_price: Price per unit of the new purchase
        previous_price: Last known price per unit, if any

    Returns:
        STABLE when there is no usable previous price, otherwise the
        direction of the change
    """
    if not previous_price:
        return PriceTrend.STABLE
    if current_price > previous_price:
        return PriceTrend.INCREASE
    if current_price < previous_price:
        return PriceTrend.DECREASE
    return PriceTrend.STABLE


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(amount: float, symbol: str = "₹") -> str:
    """Format an amount with Indian digit grouping.

    e.g. 1200 -> "₹ 1,200.00", 1234567.5 -> "₹ 12,34,567.50"
    """
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    return f"{symbol} {sign}{_group_indian(whole)}.{fraction}"


def format_date(value: str | date | datetime | None) -> str:
    """Render a timestamp as e.g. "Feb 21, 2026".

    Strings that cannot be parsed are returned unchanged.
    """
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return f"{value:%b} {value.day}, {value.year}"


def percentage_change(old_value: float, new_value: float) -> int:
    """Rounded percentage change from old_value to new_value."""
    if old_value == 0:
        return 0
    return round((new_value - old_value) / old_value * 100)


def current_month_year(now: datetime | None = None) -> tuple[int, int]:
    """Return (month, year) for now, month 1-based."""
    now = now or datetime.now()
    return now.month, now.year


def previous_month_year(now: datetime | None = None) -> tuple[int, int]:
    """Return (month, year) of the calendar month before now."""
    month, year = current_month_year(now)
    return shift_month(month, year, -1)


def shift_month(month: int, year: int, offset: int) -> tuple[int, int]:
    """Move a 1-based (month, year) pair by offset months."""
    index = year * 12 + (month - 1) + offset
    return index % 12 + 1, index // 12
