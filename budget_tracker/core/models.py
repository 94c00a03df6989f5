# budget_tracker/core/models.py
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping

CENT = Decimal("0.01")
# DECIMAL(10, 2) on PostgreSQL
MAX_AMOUNT = Decimal("100000000")
REQUIRED_FIELDS = ("date", "amount", "budget_type")

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


class ValidationError(ValueError):
    """Raised when user input is rejected before it reaches the database."""


class TransactionValidationError(ValidationError):
    """Raised when a transaction payload cannot be stored."""


@dataclass
class Transaction:
    date: date
    budget_type: str
    amount: Decimal
    name: str | None = None
    description: str | None = None
    paid_off: bool = True
    id: int | None = None
    created_at: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "name": self.name,
            "description": self.description,
            "budget_type": self.budget_type,
            "amount": float(self.amount),
            "paid_off": self.paid_off,
            "created_at": self.created_at,
        }


def to_money(value) -> Decimal:
    """Quantize *value* to cents, rounding half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_text(value) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def _parse_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise TransactionValidationError("Amount must be a valid number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise TransactionValidationError("Amount must be a valid number")
    if not amount.is_finite():
        raise TransactionValidationError("Amount must be a valid number")
    if amount >= MAX_AMOUNT:
        raise TransactionValidationError("Amount must be less than 100000000")
    try:
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # far below zero, too many digits to round
        raise TransactionValidationError("Amount must be greater than zero")
    if amount <= 0:
        raise TransactionValidationError("Amount must be greater than zero")
    return amount


def parse_iso_date(text: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string; anything else is a ValueError."""
    text = text.strip()
    if not DATE_PATTERN.match(text):
        raise ValueError(f"not a YYYY-MM-DD date: {text!r}")
    return datetime.strptime(text, "%Y-%m-%d").date()


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise TransactionValidationError("Date must be in YYYY-MM-DD format")


def parse_paid_off(value) -> bool:
    """Interpret the paid flag; a missing value means the expense is paid."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not math.isnan(value) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise TransactionValidationError("paid_off must be true or false")


def parse_transaction(payload: Mapping[str, Any]) -> Transaction:
    """Build a :class:`Transaction` from a request body or imported row.

    ``date``, ``amount`` and ``budget_type`` are required. The amount must be
    a positive number and is rounded to two decimal places.
    """
    if any(_is_blank(payload.get(field)) for field in REQUIRED_FIELDS):
        raise TransactionValidationError(
            "Missing required fields: date, amount, and budget_type are required"
        )

    return Transaction(
        date=_parse_date(payload["date"]),
        budget_type=str(payload["budget_type"]).strip(),
        amount=_parse_amount(payload["amount"]),
        name=_clean_text(payload.get("name")),
        description=_clean_text(payload.get("description")),
        paid_off=parse_paid_off(payload.get("paid_off")),
    )
