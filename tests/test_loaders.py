from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from budget_tracker.config import load_config
from budget_tracker.loaders import get_loader
from budget_tracker.loaders.spreadsheet import SpreadsheetLoader


def write_budget_csv(path):
    path.write_text(
        "Date,Name,Description,Category,Amount,payedOff\n"
        "2025-04-01,Fresh Market,Weekly shop,groceries,45.5,TRUE\n"
        ",,,,,\n"
        "2025-04-03,Shell,,fuel,60,false\n"
    )


def test_csv_loader_maps_headers(tmp_path):
    path = tmp_path / "budget.csv"
    write_budget_csv(path)

    txs = list(SpreadsheetLoader().load(path))

    assert len(txs) == 2
    assert txs[0].date == date(2025, 4, 1)
    assert txs[0].budget_type == "groceries"
    assert txs[0].amount == Decimal("45.50")
    assert txs[0].paid_off is True
    assert txs[1].description is None
    assert txs[1].paid_off is False


def test_excel_loader(tmp_path):
    path = tmp_path / "budget.xlsx"
    pd.DataFrame(
        [
            {"date": "2025-05-02", "name": "Cinema", "budget_type": "fun", "amount": 22.5, "paid_off": "yes"},
            {"date": "2025-05-03", "name": None, "budget_type": "fun", "amount": 9, "paid_off": "no"},
        ]
    ).to_excel(path, index=False, engine="openpyxl")

    txs = list(SpreadsheetLoader().load(path))

    assert [tx.amount for tx in txs] == [Decimal("22.50"), Decimal("9.00")]
    assert txs[0].date == date(2025, 5, 2)
    assert txs[1].name is None
    assert txs[1].paid_off is False


def test_loader_reports_row_number(tmp_path):
    path = tmp_path / "budget.csv"
    path.write_text(
        "date,budget_type,amount\n"
        "2025-04-01,groceries,10\n"
        "2025-04-02,groceries,ten\n"
    )
    with pytest.raises(ValueError, match="Row 3 in budget.csv: Amount must be a valid number"):
        list(SpreadsheetLoader().load(path))


def test_loader_requires_columns(tmp_path):
    path = tmp_path / "budget.csv"
    path.write_text("date,amount\n2025-04-01,10\n")
    with pytest.raises(ValueError, match="missing column"):
        list(SpreadsheetLoader().load(path))


def test_loader_rejects_unknown_format(tmp_path):
    path = tmp_path / "budget.json"
    path.write_text("[]")
    with pytest.raises(ValueError, match="Unsupported file format"):
        list(SpreadsheetLoader().load(path))


def test_get_loader_from_config():
    loader = get_loader("spreadsheet", load_config(environ={}))
    assert isinstance(loader, SpreadsheetLoader)


def test_get_loader_unknown_name():
    with pytest.raises(ValueError, match="Unknown loader 'bank'"):
        get_loader("bank", load_config(environ={}))
