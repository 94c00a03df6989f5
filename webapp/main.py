from __future__ import annotations

from pathlib import Path
from typing import Dict
from urllib.parse import urlencode

from fastapi import APIRouter, FastAPI, Form, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from budget_tracker import database, web
from budget_tracker.core.models import ValidationError, parse_transaction
from budget_tracker.database import Database
from webapp.views import (
    PAID_FILTERS,
    filter_by_paid,
    format_money,
    month_date_range,
    month_label,
    next_sort_direction,
    sort_transactions,
)

TEMPLATES_DIR = Path(__file__).with_name("templates")

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["money"] = format_money
templates.env.filters["month_label"] = month_label

router = APIRouter()


def _redirect(to: str = "/", message: str | None = None, error: str | None = None):
    params = {key: value for key, value in (("message", message), ("error", error)) if value}
    target = f"{to}?{urlencode(params)}" if params else to
    return RedirectResponse(target, status_code=303)


def _form_payload(date, name, description, budget_type, amount, paid_off) -> Dict[str, object]:
    return {
        "date": date,
        "name": name,
        "description": description,
        "budget_type": budget_type,
        "amount": amount,
        # unchecked checkboxes are not submitted at all
        "paid_off": paid_off is not None,
    }


@router.get("/")
def index(
    request: Request,
    budget_type: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    paid: str = "all",
    limit: int = 100,
    message: str | None = None,
    error: str | None = None,
):
    db: Database = request.app.state.db
    filters = {
        "budget_type": budget_type or "",
        "start_date": start_date or "",
        "end_date": end_date or "",
        "paid": paid if paid in PAID_FILTERS else "all",
        "limit": max(1, min(limit, 1000)),
    }
    try:
        rows = database.query_transactions(
            db,
            budget_type=budget_type or None,
            start_date=web.parse_date_param(start_date, "start_date"),
            end_date=web.parse_date_param(end_date, "end_date"),
            limit=filters["limit"],
        )
    except ValidationError as exc:
        error = str(exc)
        rows = database.query_transactions(db, limit=filters["limit"])

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "stats": database.overview_stats(db),
            "trends": database.spending_trends(db),
            "budget_types": database.list_budget_types(db),
            "months": database.list_available_months(db),
            "unpaid": database.query_transactions(db, paid_off=False),
            "transactions": filter_by_paid(rows, filters["paid"]),
            "filters": filters,
            "message": message,
            "error": error,
        },
    )


@router.get("/months/{month}")
def month_view(request: Request, month: str, sort: str = "date", direction: str = "desc"):
    db: Database = request.app.state.db
    try:
        start, end = month_date_range(month)
    except ValidationError as exc:
        return _redirect(error=str(exc))

    rows = database.query_transactions(db, start_date=start, end_date=end)
    return templates.TemplateResponse(
        request,
        "month.html",
        {
            "month": month,
            "months": database.list_available_months(db),
            "breakdown": database.category_breakdown(db, month),
            "transactions": sort_transactions(rows, sort, direction),
            "sort": sort,
            "direction": direction,
            "next_direction": lambda key: next_sort_direction(sort, direction, key),
        },
    )


@router.post("/transactions/add")
def add_transaction(
    request: Request,
    date: str = Form(""),
    name: str = Form(""),
    description: str = Form(""),
    budget_type: str = Form(""),
    amount: str = Form(""),
    paid_off: str | None = Form(None),
):
    payload = _form_payload(date, name, description, budget_type, amount, paid_off)
    try:
        tx = parse_transaction(payload)
    except ValidationError as exc:
        return _redirect(error=str(exc))
    database.create_transaction(request.app.state.db, tx)
    return _redirect(message="Transaction added")


@router.get("/transactions/{transaction_id}/edit")
def edit_transaction_form(request: Request, transaction_id: int, error: str | None = None):
    row = database.get_transaction(request.app.state.db, transaction_id)
    if row is None:
        return _redirect(error="Transaction not found")
    return templates.TemplateResponse(
        request, "edit.html", {"transaction": row, "error": error}
    )


@router.post("/transactions/{transaction_id}/edit")
def edit_transaction(
    request: Request,
    transaction_id: int,
    date: str = Form(""),
    name: str = Form(""),
    description: str = Form(""),
    budget_type: str = Form(""),
    amount: str = Form(""),
    paid_off: str | None = Form(None),
):
    payload = _form_payload(date, name, description, budget_type, amount, paid_off)
    try:
        tx = parse_transaction(payload)
    except ValidationError as exc:
        return _redirect(f"/transactions/{transaction_id}/edit", error=str(exc))
    if database.update_transaction(request.app.state.db, transaction_id, tx) is None:
        return _redirect(error="Transaction not found")
    return _redirect(message="Transaction updated")


@router.post("/transactions/{transaction_id}/delete")
def delete_transaction(request: Request, transaction_id: int):
    if not database.delete_transaction(request.app.state.db, transaction_id):
        return _redirect(error="Transaction not found")
    return _redirect(message="Transaction deleted")


def create_app(config: Dict[str, object] | None = None, db: Database | None = None) -> FastAPI:
    """The JSON API plus the server-rendered dashboard on one app."""
    app = web.create_app(config, db)
    app.title = "Budget Tracker"
    app.include_router(router)
    return app
