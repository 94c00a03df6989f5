from datetime import date
from decimal import Decimal

import pytest

from budget_tracker.core.models import Transaction
from budget_tracker.database import Database, append_transactions


def sample_transactions():
    return [
        Transaction(date=date(2025, 1, 5), name="Fresh Market", description="Weekly shop",
                    budget_type="groceries", amount=Decimal("45.50")),
        Transaction(date=date(2025, 1, 20), name="Bean House", description=None,
                    budget_type="eat out", amount=Decimal("12.00")),
        Transaction(date=date(2025, 2, 1), name="Shell", description="Fuel",
                    budget_type="fuel", amount=Decimal("60.00"), paid_off=False),
        Transaction(date=date(2025, 2, 10), name="StreamFlix", description="Monthly plan",
                    budget_type="subscriptions", amount=Decimal("15.00")),
        Transaction(date=date(2025, 2, 12), name="Fresh Market", description="Top-up",
                    budget_type="groceries", amount=Decimal("30.25"), paid_off=False),
    ]


@pytest.fixture
def db(tmp_path):
    return Database(path=tmp_path / "transactions.db")


@pytest.fixture
def seeded_db(db):
    append_transactions(db, sample_transactions())
    return db
