# budget_tracker/outputs/excel_output.py

"""Excel output module backed by XlsxWriter.

This module writes transactions to an Excel workbook with one worksheet per
month (largest expenses first), an ``AllData`` sheet holding every row, a
``Summary`` sheet with totals per month and budget type, and a ``Charts``
sheet plotting monthly spending and the overall budget-type split.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

import xlsxwriter

from budget_tracker.outputs.base import BaseOutput

logger = logging.getLogger(__name__)


class ExcelOutput(BaseOutput):
    """Generate a local Excel workbook from stored transactions."""

    MONTH_FMT = "%B %Y"
    ALL_DATA = "AllData"
    SUMMARY = "Summary"
    CHARTS = "Charts"
    HEADERS = ["date", "name", "description", "budget_type", "amount", "paid_off"]
    # (chart type, anchor row) matching _chart_series order
    CHART_STYLES = [("column", 0), ("pie", 18)]

    def __init__(self, config: dict):
        super().__init__(config)
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, transactions):
        if not transactions:
            logger.info("No transactions to write.")
            return None

        months = sorted({tx["date"][:7] for tx in transactions})
        year = datetime.strptime(months[0], "%Y-%m").year
        out_path = os.path.join(self.output_dir, f"Budget{year}.xlsx")

        workbook = xlsxwriter.Workbook(out_path)
        amount_fmt = workbook.add_format({"num_format": "$#,##0.00"})

        all_rows = []
        monthly_totals = {}
        summary_data = {}
        for month_str in months:
            sheet_name = datetime.strptime(month_str, "%Y-%m").strftime(self.MONTH_FMT)
            ws = workbook.add_worksheet(sheet_name)
            ws.freeze_panes(1, 0)
            ws.write_row(0, 0, self.HEADERS)

            month_rows = []
            for tx in transactions:
                if tx["date"][:7] != month_str:
                    continue
                row = [
                    tx["date"],
                    tx.get("name") or "",
                    tx.get("description") or "",
                    tx["budget_type"],
                    float(tx["amount"]),
                    "Paid" if tx.get("paid_off") else "Unpaid",
                ]
                month_rows.append(row)
                all_rows.append([sheet_name] + row)
                summary_data.setdefault(sheet_name, {}).setdefault(row[3], 0.0)
                summary_data[sheet_name][row[3]] += row[4]

            # Largest expenses first
            month_rows.sort(key=lambda r: r[4], reverse=True)

            for row_idx, row in enumerate(month_rows, start=1):
                ws.write_row(row_idx, 0, row[:4])
                ws.write_number(row_idx, 4, row[4], amount_fmt)
                ws.write(row_idx, 5, row[5])

            monthly_totals[sheet_name] = sum(r[4] for r in month_rows)
            ws.set_column(4, 4, None, amount_fmt)
            ws.add_table(0, 0, len(month_rows), len(self.HEADERS) - 1, {
                "columns": [{"header": h} for h in self.HEADERS]
            })

        # AllData worksheet consolidating all transactions
        all_ws = workbook.add_worksheet(self.ALL_DATA)
        all_ws.freeze_panes(1, 0)
        all_headers = ["month"] + self.HEADERS
        all_ws.write_row(0, 0, all_headers)
        for idx, row in enumerate(all_rows, start=1):
            all_ws.write_row(idx, 0, row[:5])
            all_ws.write_number(idx, 5, row[5], amount_fmt)
            all_ws.write(idx, 6, row[6])
        all_ws.set_column(5, 5, None, amount_fmt)
        all_ws.add_table(0, 0, len(all_rows), len(all_headers) - 1, {
            "columns": [{"header": h} for h in all_headers]
        })

        # Summary worksheet aggregating by month & budget type
        summary_ws = workbook.add_worksheet(self.SUMMARY)
        summary_ws.freeze_panes(1, 0)
        summary_ws.set_column(2, 2, None, amount_fmt)
        row_idx = 0
        grand_total = 0.0
        for month_str in months:
            sheet_name = datetime.strptime(month_str, "%Y-%m").strftime(self.MONTH_FMT)
            budget_types = summary_data.get(sheet_name, {})
            for i, budget_type in enumerate(sorted(budget_types)):
                if i == 0:
                    summary_ws.write(row_idx, 0, sheet_name)
                summary_ws.write(row_idx, 1, budget_type)
                summary_ws.write_number(row_idx, 2, budget_types[budget_type], amount_fmt)
                row_idx += 1
            month_total = monthly_totals.get(sheet_name, 0.0)
            summary_ws.write(row_idx, 0, f"{sheet_name} Total")
            summary_ws.write_number(row_idx, 2, month_total, amount_fmt)
            grand_total += month_total
            row_idx += 1
        summary_ws.write(row_idx, 0, "Grand Total")
        summary_ws.write_number(row_idx, 2, grand_total, amount_fmt)

        # Charts worksheet: monthly column chart, budget-type pie
        charts_ws = workbook.add_worksheet(self.CHARTS)
        charts_ws.set_column(1, 1, None, amount_fmt)
        start_row = 0
        for (title, header, rows), (chart_type, anchor_row) in zip(
            self._chart_series(monthly_totals, summary_data), self.CHART_STYLES
        ):
            charts_ws.write_row(start_row, 0, [header, "Total"])
            for offset, (label, total) in enumerate(rows, start=1):
                charts_ws.write(start_row + offset, 0, label)
                charts_ws.write_number(start_row + offset, 1, total, amount_fmt)
            last_row = start_row + len(rows)

            chart = workbook.add_chart({"type": chart_type})
            chart.add_series({
                "name": title,
                "categories": [self.CHARTS, start_row + 1, 0, last_row, 0],
                "values": [self.CHARTS, start_row + 1, 1, last_row, 1],
            })
            chart.set_title({"name": title})
            charts_ws.insert_chart(anchor_row, 4, chart)
            start_row = last_row + 2

        workbook.close()
        logger.info("Written Excel workbook %s", out_path)
        return out_path

    @staticmethod
    def _chart_series(monthly_totals, summary_data):
        """(title, header, rows) for each chart; months oldest first, budget types largest first."""
        by_type = {}
        for totals in summary_data.values():
            for budget_type, amount in totals.items():
                by_type[budget_type] = by_type.get(budget_type, 0.0) + amount
        return [
            ("Monthly spending", "Month", list(monthly_totals.items())),
            (
                "Spending by budget type",
                "Budget type",
                sorted(by_type.items(), key=lambda item: (-item[1], item[0])),
            ),
        ]
