import csv

import openpyxl
import pytest

from budget_tracker.outputs import get_output
from budget_tracker.outputs.csv_output import CSVOutput
from budget_tracker.outputs.excel_output import ExcelOutput


def _rows():
    return [
        {"id": 3, "date": "2025-02-03", "name": "Shell", "description": None,
         "budget_type": "fuel", "amount": 60.0, "paid_off": False},
        {"id": 1, "date": "2025-01-05", "name": "Fresh Market", "description": "Weekly shop",
         "budget_type": "groceries", "amount": 45.5, "paid_off": True},
        {"id": 2, "date": "2025-01-20", "name": "Bean House", "description": None,
         "budget_type": "eat out", "amount": 12.0, "paid_off": True},
    ]


def test_csv_output_sorted_by_date(tmp_path):
    out = CSVOutput({"output_dir": str(tmp_path)})
    path = out.write(_rows())

    assert path == str(tmp_path / "Budget2025.csv")
    with open(path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["date", "name", "description", "budget_type", "amount", "paid_off"]
    assert [r[0] for r in rows[1:]] == ["2025-01-05", "2025-01-20", "2025-02-03"]
    assert rows[3] == ["2025-02-03", "Shell", "", "fuel", "60.00", "false"]


def test_outputs_skip_empty_input(tmp_path):
    assert CSVOutput({"output_dir": str(tmp_path)}).write([]) is None
    assert ExcelOutput({"output_dir": str(tmp_path)}).write([]) is None


def test_excel_output_workbook(tmp_path):
    out = get_output(
        "excel",
        {"output_dir": str(tmp_path), "output_modules": {"excel": "budget_tracker.outputs.excel_output.ExcelOutput"}},
    )
    path = out.write(_rows())

    wb = openpyxl.load_workbook(path, data_only=True)
    assert wb.sheetnames == ["January 2025", "February 2025", "AllData", "Summary", "Charts"]

    january = wb["January 2025"]
    assert january["A1"].value == "date"
    assert january["E1"].value == "amount"
    amounts = [c[0].value for c in january.iter_rows(min_row=2, min_col=5, max_col=5)]
    assert amounts == [45.5, 12.0]

    summary = [row for row in wb["Summary"].iter_rows(values_only=True)]
    assert summary[-1][0] == "Grand Total"
    assert summary[-1][2] == 117.5


def test_chart_series_orders_and_aggregates():
    monthly_totals = {"January 2024": 25.0, "February 2024": 4.0, "March 2024": 20.0}
    summary_data = {
        "January 2024": {"groceries": 25.0},
        "February 2024": {"eat out": 4.0},
        "March 2024": {"eat out": 20.0, "books": 25.0},
    }

    monthly, budget_types = ExcelOutput._chart_series(monthly_totals, summary_data)

    assert monthly == (
        "Monthly spending",
        "Month",
        [("January 2024", 25.0), ("February 2024", 4.0), ("March 2024", 20.0)],
    )
    assert budget_types[0] == "Spending by budget type"
    assert budget_types[2] == [("books", 25.0), ("groceries", 25.0), ("eat out", 24.0)]


def test_excel_charts_sheet_holds_chart_data(tmp_path):
    path = ExcelOutput({"output_dir": str(tmp_path)}).write(_rows())

    charts = list(openpyxl.load_workbook(path)["Charts"].iter_rows(values_only=True))
    assert charts[0][:2] == ("Month", "Total")
    assert [row[0] for row in charts[1:3]] == ["January 2025", "February 2025"]
    assert charts[4][:2] == ("Budget type", "Total")
    assert charts[5][0] == "fuel"


def test_get_output_unknown_name(tmp_path):
    with pytest.raises(ValueError, match="Unknown output 'sheets'"):
        get_output("sheets", {"output_dir": str(tmp_path), "output_modules": {}})
