from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from budget_tracker.config import load_config
from budget_tracker.core.models import ValidationError
from budget_tracker.database import get_transaction, query_transactions
from webapp.main import create_app
from webapp.views import (
    filter_by_paid,
    month_date_range,
    month_label,
    next_sort_direction,
    sort_transactions,
)


@pytest.fixture
def client(seeded_db):
    return TestClient(create_app(load_config(environ={}), seeded_db))


def _flash(response):
    return parse_qs(urlparse(response.headers["location"]).query)


def test_sort_transactions_puts_missing_values_last():
    rows = [
        {"name": "beta", "amount": 3.0},
        {"name": None, "amount": 1.0},
        {"name": "Alpha", "amount": 2.0},
    ]
    assert [r["name"] for r in sort_transactions(rows, "name", "asc")] == ["Alpha", "beta", None]
    assert [r["name"] for r in sort_transactions(rows, "name", "desc")] == ["beta", "Alpha", None]
    assert [r["amount"] for r in sort_transactions(rows, "amount", "asc")] == [1.0, 2.0, 3.0]


def test_sort_transactions_falls_back_to_date():
    rows = [{"date": "2025-01-02"}, {"date": "2025-01-03"}]
    assert sort_transactions(rows, "id; DROP TABLE", "desc")[0]["date"] == "2025-01-03"


def test_next_sort_direction_toggles_active_column():
    assert next_sort_direction("amount", "asc", "amount") == "desc"
    assert next_sort_direction("amount", "desc", "amount") == "asc"
    assert next_sort_direction("amount", "asc", "date") == "asc"


def test_filter_by_paid():
    rows = [{"id": 1, "paid_off": True}, {"id": 2, "paid_off": False}]
    assert [r["id"] for r in filter_by_paid(rows, "paid")] == [1]
    assert [r["id"] for r in filter_by_paid(rows, "unpaid")] == [2]
    assert len(filter_by_paid(rows, "all")) == 2


def test_month_helpers():
    assert month_date_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_date_range("2025-12") == (date(2025, 12, 1), date(2025, 12, 31))
    assert month_label("2025-02") == "February 2025"
    with pytest.raises(ValidationError):
        month_date_range("2025-00")


def test_dashboard_renders(client):
    res = client.get("/")
    assert res.status_code == 200
    assert "Budget Tracker" in res.text
    assert "StreamFlix" in res.text
    assert "$162.75" in res.text


def test_dashboard_paid_filter(client):
    res = client.get("/", params={"paid": "paid", "budget_type": "groceries"})
    assert res.status_code == 200
    assert "Weekly shop" in res.text
    assert "Top-up" not in res.text


def test_dashboard_reports_bad_dates(client):
    res = client.get("/", params={"start_date": "nope"})
    assert res.status_code == 200
    assert "start_date must be in YYYY-MM-DD format" in res.text


def test_month_view_sorts_rows(client):
    res = client.get("/months/2025-02", params={"sort": "amount", "direction": "asc"})
    assert res.status_code == 200
    text = res.text
    assert "February 2025" in text
    assert text.index("StreamFlix") < text.index("Top-up") < text.index("Fuel")
    assert "/months/2025-02?sort=amount&direction=desc" in text


def test_month_view_rejects_bad_month(client):
    res = client.get("/months/2025-99", follow_redirects=False)
    assert res.status_code == 303
    assert "YYYY-MM" in _flash(res)["error"][0]


def test_add_transaction_form(client, seeded_db):
    res = client.post(
        "/transactions/add",
        data={"date": "2025-03-01", "name": "Bakery", "budget_type": "groceries", "amount": "4.5"},
        follow_redirects=False,
    )
    assert res.status_code == 303
    assert _flash(res)["message"] == ["Transaction added"]

    added = query_transactions(seeded_db, start_date=date(2025, 3, 1))
    assert len(added) == 1
    assert added[0]["name"] == "Bakery"
    assert added[0]["paid_off"] is False  # checkbox not submitted


def test_add_transaction_form_validation(client, seeded_db):
    res = client.post(
        "/transactions/add",
        data={"date": "2025-03-01", "budget_type": "groceries", "amount": "lots"},
        follow_redirects=False,
    )
    assert res.status_code == 303
    assert _flash(res)["error"] == ["Amount must be a valid number"]
    assert len(query_transactions(seeded_db)) == 5


def test_edit_and_delete_forms(client, seeded_db):
    tx = query_transactions(seeded_db, budget_type="fuel")[0]

    form = client.get(f"/transactions/{tx['id']}/edit")
    assert form.status_code == 200
    assert 'value="60.00"' in form.text

    res = client.post(
        f"/transactions/{tx['id']}/edit",
        data={"date": tx["date"], "name": "Shell", "budget_type": "car", "amount": "60", "paid_off": "on"},
        follow_redirects=False,
    )
    assert _flash(res)["message"] == ["Transaction updated"]
    updated = get_transaction(seeded_db, tx["id"])
    assert updated["budget_type"] == "car"
    assert updated["paid_off"] is True

    res = client.post(f"/transactions/{tx['id']}/delete", follow_redirects=False)
    assert _flash(res)["message"] == ["Transaction deleted"]
    assert get_transaction(seeded_db, tx["id"]) is None

    res = client.get(f"/transactions/{tx['id']}/edit", follow_redirects=False)
    assert _flash(res)["error"] == ["Transaction not found"]


def test_api_is_mounted_alongside_dashboard(client):
    assert client.get("/api/health").json()["success"] is True
