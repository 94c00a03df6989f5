from __future__ import annotations

import anyio
from mcp.server.fastmcp import FastMCP

from datetime import date

from pathlib import Path

from budget_tracker import database
from budget_tracker.config import load_config
from budget_tracker.core.models import parse_iso_date
from budget_tracker.database import Database

server = FastMCP(
    name="Budget Tracker",
    instructions="Read-only access to recorded expenses and their summaries",
)


def _database(location: str | None) -> Database:
    if not location:
        return Database.from_config(load_config())
    if "://" not in location and not Path(location).exists():
        raise FileNotFoundError(f"Database not found: {location}")
    return Database.from_location(location)


def _parse_date(value: str | None, field: str) -> date | None:
    try:
        return parse_iso_date(value) if value else None
    except ValueError as exc:
        raise ValueError(f"Invalid {field}: {value}") from exc


@server.tool(
    name="get_transactions", description="Fetch transactions, newest first"
)
async def get_transactions(
    database_location: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    budget_type: str | None = None,
) -> list[dict]:
    """Return transactions from ``database_location``.

    Parameters
    ----------
    database_location:
        SQLite file path or PostgreSQL URL; the configured database when omitted.
    start_date, end_date:
        Optional ISO formatted date strings bounding the query.
    budget_type:
        Optional budget type to match exactly.
    """

    start = _parse_date(start_date, "start_date")
    end = _parse_date(end_date, "end_date")
    if start and end and start > end:
        raise ValueError("start_date must be on or before end_date")

    db = _database(database_location)

    def _run() -> list[dict]:
        return database.query_transactions(
            db, budget_type=budget_type, start_date=start, end_date=end
        )

    return await anyio.to_thread.run_sync(_run)


@server.tool(
    name="summarize_budget_types",
    description="Total, average, min and max spend per budget type",
)
async def summarize_budget_types(database_location: str | None = None) -> list[dict]:
    db = _database(database_location)
    return await anyio.to_thread.run_sync(database.summarize_by_budget_type, db)


@server.tool(name="spending_trends", description="Monthly spending totals, oldest first")
async def spending_trends(database_location: str | None = None) -> list[dict]:
    db = _database(database_location)
    return await anyio.to_thread.run_sync(database.spending_trends, db)


@server.tool(
    name="category_breakdown_for_month",
    description="Spend per budget type for a YYYY-MM month",
)
async def category_breakdown_for_month(
    month: str, database_location: str | None = None
) -> list[dict]:
    db = _database(database_location)
    return await anyio.to_thread.run_sync(database.category_breakdown, db, month)


def main() -> None:
    server.run()


if __name__ == "__main__":
    main()
