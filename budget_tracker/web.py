from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from budget_tracker import database
from budget_tracker.config import load_config
from budget_tracker.core.models import (
    ValidationError,
    parse_iso_date,
    parse_paid_off,
    parse_transaction,
)
from budget_tracker.database import Database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class TransactionNotFound(LookupError):
    pass


def _json_response(payload: Dict[str, Any], status: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status, headers={"Cache-Control": "no-store"})


def _success(data: Any, status: int = 200, **extra: Any) -> JSONResponse:
    return _json_response({"success": True, "data": data, **extra}, status=status)


def _failure(message: str, status: int) -> JSONResponse:
    return _json_response({"success": False, "error": message}, status=status)


def parse_date_param(value: str | None, field: str) -> date | None:
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be in YYYY-MM-DD format")


def _parse_paid_filter(value: str | None) -> bool | None:
    if value is None or value.strip().lower() in ("", "all"):
        return None
    text = value.strip().lower()
    if text == "paid":
        return True
    if text == "unpaid":
        return False
    return parse_paid_off(text)


def _db(request: Request) -> Database:
    return request.app.state.db


def _page_limit(request: Request, limit: int | None) -> int:
    pagination = request.app.state.config["pagination"]
    if limit is None:
        return int(pagination["default_limit"])
    return min(limit, int(pagination["max_limit"]))


@router.get("/health")
def health(request: Request):
    return _json_response(
        {"success": True, "message": "API is running", "database": _db(request).label}
    )


@router.get("/transactions")
def list_transactions(
    request: Request,
    budget_type: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    paid_off: str | None = None,
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
):
    rows = database.query_transactions(
        _db(request),
        budget_type=budget_type or None,
        start_date=parse_date_param(start_date, "start_date"),
        end_date=parse_date_param(end_date, "end_date"),
        paid_off=_parse_paid_filter(paid_off),
        limit=_page_limit(request, limit),
        offset=offset,
    )
    return _success(rows, count=len(rows))


@router.get("/transactions/{transaction_id}")
def get_transaction(request: Request, transaction_id: int):
    row = database.get_transaction(_db(request), transaction_id)
    if row is None:
        raise TransactionNotFound(transaction_id)
    return _success(row)


@router.post("/transactions")
def create_transaction(request: Request, payload: Dict[str, Any] = Body(...)):
    tx = parse_transaction(payload)
    row = database.create_transaction(_db(request), tx)
    return _success(row, status=201, message="Transaction created successfully")


@router.put("/transactions/{transaction_id}")
def update_transaction(
    request: Request, transaction_id: int, payload: Dict[str, Any] = Body(...)
):
    tx = parse_transaction(payload)
    row = database.update_transaction(_db(request), transaction_id, tx)
    if row is None:
        raise TransactionNotFound(transaction_id)
    return _success(row, message="Transaction updated successfully")


@router.delete("/transactions/{transaction_id}")
def delete_transaction(request: Request, transaction_id: int):
    if not database.delete_transaction(_db(request), transaction_id):
        raise TransactionNotFound(transaction_id)
    return _success({"id": transaction_id}, message="Transaction deleted successfully")


@router.get("/summary/budget-types")
def budget_type_summary(request: Request):
    return _success(database.summarize_by_budget_type(_db(request)))


@router.get("/summary/monthly")
def monthly_summary(request: Request):
    return _success(database.summarize_by_month(_db(request)))


@router.get("/analytics/category-breakdown")
def category_breakdown(request: Request, month: str | None = None):
    return _success(database.category_breakdown(_db(request), month))


@router.get("/analytics/trends")
def trends(request: Request):
    return _success(database.spending_trends(_db(request)))


@router.get("/stats/overview")
def overview(request: Request):
    return _success(database.overview_stats(_db(request)))


@router.get("/available-months")
def available_months(request: Request):
    return _success(database.list_available_months(_db(request)))


@router.get("/budget-types")
def budget_types(request: Request):
    return _success(database.list_budget_types(_db(request)))


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = first.get("loc") or ()
    field = location[-1] if location else "request"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _failure(str(exc), 400)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return _failure(_describe_validation_error(exc), 400)

    @app.exception_handler(TransactionNotFound)
    async def _not_found(request: Request, exc: TransactionNotFound):
        return _failure("Transaction not found", 404)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return _failure(message, exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _failure(str(exc), 500)


def create_app(config: Dict[str, object] | None = None, db: Database | None = None) -> FastAPI:
    """Build the JSON API.

    ``config`` defaults to :func:`budget_tracker.config.load_config` and
    ``db`` to the database it describes.
    """
    config = config or load_config()
    app = FastAPI(title="Budget Tracker API")
    app.state.config = config
    app.state.db = db or Database.from_config(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.get("cors_origins") or []),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)
    app.include_router(router)
    logger.info("API configured against %s", app.state.db.label)
    return app
