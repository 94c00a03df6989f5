"""Presentation helpers for the dashboard: sorting, filtering and month maths.

These operate on the already-small lists returned by the API layer, the way
the browser table sorts and filters rows it has already fetched.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime
from typing import Dict, Iterable, List, Tuple

from budget_tracker.database import validate_month

SORTABLE_FIELDS = ("date", "name", "description", "budget_type", "amount", "paid_off")
PAID_FILTERS = ("all", "paid", "unpaid")


def _sort_value(value):
    if isinstance(value, str):
        return value.lower()
    return value


def sort_transactions(
    rows: Iterable[Dict[str, object]], key: str = "date", direction: str = "desc"
) -> List[Dict[str, object]]:
    """Return *rows* ordered by *key*; rows missing the value always go last."""
    if key not in SORTABLE_FIELDS:
        key = "date"
    rows = list(rows)
    present = [row for row in rows if row.get(key) is not None]
    missing = [row for row in rows if row.get(key) is None]
    present.sort(key=lambda row: _sort_value(row[key]), reverse=direction == "desc")
    return present + missing


def next_sort_direction(current_key: str, current_direction: str, key: str) -> str:
    # clicking the active ascending column flips it
    if key == current_key and current_direction == "asc":
        return "desc"
    return "asc"


def filter_by_paid(rows: Iterable[Dict[str, object]], status: str | None) -> List[Dict[str, object]]:
    if status == "paid":
        return [row for row in rows if row.get("paid_off")]
    if status == "unpaid":
        return [row for row in rows if not row.get("paid_off")]
    return list(rows)


def month_date_range(month: str) -> Tuple[date, date]:
    """First and last day of a ``YYYY-MM`` month."""
    month = validate_month(month)
    year, month_num = map(int, month.split("-"))
    return date(year, month_num, 1), date(year, month_num, monthrange(year, month_num)[1])


def month_label(month: str) -> str:
    return datetime.strptime(month, "%Y-%m").strftime("%B %Y")


def format_money(value) -> str:
    return f"${float(value or 0):,.2f}"
