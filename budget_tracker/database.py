# budget_tracker/database.py
from __future__ import annotations

import logging
import re
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Tuple

import psycopg2
from psycopg2.extras import RealDictCursor

from budget_tracker.core.models import Transaction, ValidationError, to_money

logger = logging.getLogger(__name__)

SQLITE = "sqlite"
POSTGRES = "postgresql"

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

_MONTH_EXPRESSIONS: Dict[str, str] = {
    SQLITE: "strftime('%Y-%m', date)",
    POSTGRES: "TO_CHAR(date, 'YYYY-MM')",
}

_SQLITE_TABLE = """
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL,
        name TEXT,
        description TEXT,
        budget_type TEXT NOT NULL,
        amount NUMERIC NOT NULL,
        paid_off INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
"""

_POSTGRES_TABLE = """
    CREATE TABLE IF NOT EXISTS transactions (
        id SERIAL PRIMARY KEY,
        date DATE NOT NULL,
        name VARCHAR(255),
        description TEXT,
        budget_type VARCHAR(100) NOT NULL,
        amount DECIMAL(10, 2) NOT NULL,
        paid_off BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_budget_type ON transactions(budget_type)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_amount ON transactions(amount)",
]


def _view_statements(dialect: str) -> List[str]:
    month = _MONTH_EXPRESSIONS[dialect]
    create = "CREATE VIEW IF NOT EXISTS" if dialect == SQLITE else "CREATE OR REPLACE VIEW"
    return [
        f"""
        {create} monthly_summary AS
        SELECT {month} AS month,
               budget_type,
               COUNT(*) AS transaction_count,
               SUM(amount) AS total_amount,
               AVG(amount) AS avg_amount
        FROM transactions
        GROUP BY {month}, budget_type
        """,
        f"""
        {create} budget_summary AS
        SELECT budget_type,
               COUNT(*) AS transaction_count,
               SUM(amount) AS total_amount,
               AVG(amount) AS avg_amount,
               MIN(amount) AS min_amount,
               MAX(amount) AS max_amount
        FROM transactions
        GROUP BY budget_type
        """,
    ]


class Database:
    """Connection settings for either a SQLite file or a PostgreSQL server.

    The schema (table, indexes and the two summary views) is created the
    first time a connection is opened.
    """

    def __init__(self, path: str | Path | None = None, url: str | None = None) -> None:
        if url:
            self.dialect = POSTGRES
            self.url = url
            self.path = None
        else:
            if path is None:
                raise ValueError("A SQLite path is required when no database URL is set")
            self.dialect = SQLITE
            self.url = None
            self.path = Path(path)
        self._schema_ready = False

    @classmethod
    def from_config(cls, config: Dict[str, object]) -> "Database":
        settings = config.get("database", {})
        url = settings.get("url")
        if settings.get("type") == SQLITE or not url:
            return cls(path=settings.get("path") or "database/transactions.db")
        return cls(url=url)

    @classmethod
    def from_location(cls, location: str | Path) -> "Database":
        """Treat anything that looks like a URL as PostgreSQL, otherwise a file path."""
        text = str(location)
        if "://" in text:
            return cls(url=text)
        return cls(path=text)

    @property
    def is_sqlite(self) -> bool:
        return self.dialect == SQLITE

    @property
    def label(self) -> str:
        return "SQLite" if self.is_sqlite else "PostgreSQL"

    @property
    def placeholder(self) -> str:
        return "?" if self.is_sqlite else "%s"

    @property
    def month_expression(self) -> str:
        return _MONTH_EXPRESSIONS[self.dialect]

    def __repr__(self) -> str:
        target = self.path if self.is_sqlite else "<url>"
        return f"Database(dialect={self.dialect!r}, target={target!s})"

    def _open(self):
        if self.is_sqlite:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
            conn.row_factory = sqlite3.Row
            return conn
        return psycopg2.connect(self.url)

    def cursor(self, conn):
        if self.is_sqlite:
            return conn.cursor()
        return conn.cursor(cursor_factory=RealDictCursor)

    def _init_db(self, conn) -> None:
        table = _SQLITE_TABLE if self.is_sqlite else _POSTGRES_TABLE
        cur = self.cursor(conn)
        for statement in [table, *_INDEXES, *_view_statements(self.dialect)]:
            cur.execute(statement)
        conn.commit()
        logger.debug("Schema ready on %r", self)

    @contextmanager
    def connect(self) -> Iterator[object]:
        """Yield a connection, committing on success and rolling back on error."""
        conn = self._open()
        try:
            if not self._schema_ready:
                self._init_db(conn)
                self._schema_ready = True
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def fetch_all(self, sql: str, params: Iterable[object] = ()) -> List[Dict[str, object]]:
        params = list(params)
        logger.debug("SQL %s params=%s", " ".join(sql.split()), params)
        with self.connect() as conn:
            cur = self.cursor(conn)
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [dict(row) for row in rows]

    def fetch_one(self, sql: str, params: Iterable[object] = ()) -> Dict[str, object] | None:
        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None

    def amount_param(self, amount):
        # sqlite3 has no Decimal adapter
        return float(amount) if self.is_sqlite else amount


def init_db(db: Database) -> None:
    """Create the table, indexes and summary views if they are missing."""
    with db.connect():
        pass


def _money(value) -> float:
    return float(to_money(value or 0))


def _iso(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _row_to_transaction(row: Dict[str, object]) -> Transaction:
    raw_date = row["date"]
    tx_date = raw_date if isinstance(raw_date, date) else date.fromisoformat(str(raw_date)[:10])
    created = row.get("created_at")
    if isinstance(created, datetime):
        created = created.isoformat(sep=" ", timespec="seconds")
    return Transaction(
        id=int(row["id"]),
        date=tx_date,
        name=row["name"],
        description=row["description"],
        budget_type=row["budget_type"],
        amount=to_money(row["amount"]),
        paid_off=bool(row["paid_off"]),
        created_at=created,
    )


def _transaction_params(db: Database, tx: Transaction) -> list:
    return [
        tx.date.isoformat(),
        tx.name,
        tx.description,
        tx.budget_type,
        db.amount_param(tx.amount),
        bool(tx.paid_off),
    ]


def create_transaction(db: Database, tx: Transaction) -> Dict[str, object]:
    """Insert *tx* and return the stored row."""
    ph = db.placeholder
    sql = (
        "INSERT INTO transactions (date, name, description, budget_type, amount, paid_off) "
        f"VALUES ({ph}, {ph}, {ph}, {ph}, {ph}, {ph})"
    )
    if not db.is_sqlite:
        sql += " RETURNING id"
    with db.connect() as conn:
        cur = db.cursor(conn)
        cur.execute(sql, _transaction_params(db, tx))
        new_id = cur.lastrowid if db.is_sqlite else cur.fetchone()["id"]
    logger.info("Created transaction %s (%s, %s)", new_id, tx.budget_type, tx.amount)
    return get_transaction(db, new_id)


def append_transactions(db: Database, transactions: Iterable[Transaction]) -> int:
    """Bulk insert transactions, returning how many rows were written."""
    rows = [_transaction_params(db, tx) for tx in transactions]
    if not rows:
        return 0
    ph = db.placeholder
    with db.connect() as conn:
        cur = db.cursor(conn)
        cur.executemany(
            "INSERT INTO transactions (date, name, description, budget_type, amount, paid_off) "
            f"VALUES ({ph}, {ph}, {ph}, {ph}, {ph}, {ph})",
            rows,
        )
    logger.info("Appended %d transaction(s)", len(rows))
    return len(rows)


def get_transaction(db: Database, transaction_id: int) -> Dict[str, object] | None:
    row = db.fetch_one(
        f"SELECT * FROM transactions WHERE id = {db.placeholder}", [transaction_id]
    )
    return _row_to_transaction(row).to_dict() if row else None


def update_transaction(
    db: Database, transaction_id: int, tx: Transaction
) -> Dict[str, object] | None:
    """Overwrite every editable field; ``None`` when the id does not exist."""
    ph = db.placeholder
    with db.connect() as conn:
        cur = db.cursor(conn)
        cur.execute(
            f"""
            UPDATE transactions
            SET date = {ph}, name = {ph}, description = {ph},
                budget_type = {ph}, amount = {ph}, paid_off = {ph}
            WHERE id = {ph}
            """,
            _transaction_params(db, tx) + [transaction_id],
        )
        changed = cur.rowcount
    if not changed:
        return None
    logger.info("Updated transaction %s", transaction_id)
    return get_transaction(db, transaction_id)


def delete_transaction(db: Database, transaction_id: int) -> bool:
    with db.connect() as conn:
        cur = db.cursor(conn)
        cur.execute(
            f"DELETE FROM transactions WHERE id = {db.placeholder}", [transaction_id]
        )
        deleted = cur.rowcount > 0
    if deleted:
        logger.info("Deleted transaction %s", transaction_id)
    return deleted


def _build_filters(
    db: Database,
    budget_type: str | None,
    start_date: date | None,
    end_date: date | None,
    paid_off: bool | None,
) -> Tuple[str, list]:
    ph = db.placeholder
    conditions: list[str] = []
    params: list = []
    if budget_type:
        conditions.append(f"budget_type = {ph}")
        params.append(budget_type)
    if start_date:
        conditions.append(f"date >= {ph}")
        params.append(start_date.isoformat())
    if end_date:
        conditions.append(f"date <= {ph}")
        params.append(end_date.isoformat())
    if paid_off is not None:
        conditions.append(f"paid_off = {ph}")
        params.append(bool(paid_off))
    where = " WHERE " + " AND ".join(conditions) if conditions else ""
    return where, params


def query_transactions(
    db: Database,
    budget_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    paid_off: bool | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> List[Dict[str, object]]:
    """Return transactions newest first.

    Parameters
    ----------
    db:
        Target database.
    budget_type:
        Optional exact budget type to match.
    start_date, end_date:
        Optional inclusive date bounds.
    paid_off:
        ``True``/``False`` to keep only paid or unpaid rows.
    limit, offset:
        Pagination window; ``limit=None`` returns every matching row.
    """
    where, params = _build_filters(db, budget_type, start_date, end_date, paid_off)
    sql = f"SELECT * FROM transactions{where} ORDER BY date DESC, id DESC"
    if limit is not None:
        sql += f" LIMIT {db.placeholder} OFFSET {db.placeholder}"
        params += [int(limit), int(offset)]
    rows = db.fetch_all(sql, params)
    return [_row_to_transaction(row).to_dict() for row in rows]


def summarize_by_budget_type(db: Database) -> List[Dict[str, object]]:
    """Totals per budget type, largest first."""
    rows = db.fetch_all(
        """
        SELECT budget_type, transaction_count, total_amount,
               avg_amount, min_amount, max_amount
        FROM budget_summary
        ORDER BY total_amount DESC, budget_type
        """
    )
    return [
        {
            "budget_type": row["budget_type"],
            "transaction_count": int(row["transaction_count"]),
            "total_amount": _money(row["total_amount"]),
            "avg_amount": _money(row["avg_amount"]),
            "min_amount": _money(row["min_amount"]),
            "max_amount": _money(row["max_amount"]),
        }
        for row in rows
    ]


def summarize_by_month(db: Database) -> List[Dict[str, object]]:
    """Totals per month and budget type, newest month first."""
    rows = db.fetch_all(
        """
        SELECT month, budget_type, transaction_count, total_amount, avg_amount
        FROM monthly_summary
        ORDER BY month DESC, total_amount DESC, budget_type
        """
    )
    return [
        {
            "month": row["month"],
            "budget_type": row["budget_type"],
            "transaction_count": int(row["transaction_count"]),
            "total_amount": _money(row["total_amount"]),
            "avg_amount": _money(row["avg_amount"]),
        }
        for row in rows
    ]


def validate_month(month: str | None) -> str:
    if not month or not MONTH_PATTERN.match(month.strip()):
        raise ValidationError("Month parameter is required (format: YYYY-MM)")
    return month.strip()


def category_breakdown(db: Database, month: str) -> List[Dict[str, object]]:
    """Spend per budget type within a single ``YYYY-MM`` month."""
    month = validate_month(month)
    rows = db.fetch_all(
        f"""
        SELECT budget_type, transaction_count, total_amount
        FROM monthly_summary
        WHERE month = {db.placeholder}
        ORDER BY total_amount DESC, budget_type
        """,
        [month],
    )
    return [
        {
            "budget_type": row["budget_type"],
            "transaction_count": int(row["transaction_count"]),
            "total_amount": _money(row["total_amount"]),
        }
        for row in rows
    ]


def spending_trends(db: Database) -> List[Dict[str, object]]:
    month = db.month_expression
    rows = db.fetch_all(
        f"""
        SELECT {month} AS month,
               SUM(amount) AS total_spending,
               COUNT(*) AS transaction_count,
               AVG(amount) AS avg_transaction
        FROM transactions
        GROUP BY {month}
        ORDER BY month ASC
        """
    )
    return [
        {
            "month": row["month"],
            "total_spending": _money(row["total_spending"]),
            "transaction_count": int(row["transaction_count"]),
            "avg_transaction": _money(row["avg_transaction"]),
        }
        for row in rows
    ]


def overview_stats(db: Database) -> Dict[str, object]:
    row = db.fetch_one(
        """
        SELECT COUNT(*) AS total_transactions,
               COALESCE(SUM(amount), 0) AS total_amount,
               COALESCE(AVG(amount), 0) AS avg_amount,
               MIN(date) AS first_transaction,
               MAX(date) AS last_transaction,
               COUNT(DISTINCT budget_type) AS budget_types_count
        FROM transactions
        """
    )
    return {
        "total_transactions": int(row["total_transactions"] or 0),
        "total_amount": _money(row["total_amount"]),
        "avg_amount": _money(row["avg_amount"]),
        "first_transaction": _iso(row["first_transaction"]),
        "last_transaction": _iso(row["last_transaction"]),
        "budget_types_count": int(row["budget_types_count"] or 0),
    }


def list_available_months(db: Database) -> List[str]:
    month = db.month_expression
    rows = db.fetch_all(
        f"SELECT DISTINCT {month} AS month FROM transactions ORDER BY month DESC"
    )
    return [row["month"] for row in rows]


def list_budget_types(db: Database) -> List[str]:
    rows = db.fetch_all(
        "SELECT DISTINCT budget_type FROM transactions ORDER BY budget_type"
    )
    return [row["budget_type"] for row in rows]
