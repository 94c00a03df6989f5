# budget_tracker/outputs/csv_output.py

import csv
import logging
import os

from budget_tracker.outputs.base import BaseOutput

logger = logging.getLogger(__name__)

COLUMNS = ['date', 'name', 'description', 'budget_type', 'amount', 'paid_off']


class CSVOutput(BaseOutput):
    """
    Writes transactions to a single CSV file named Budget<Year>.csv,
    sorted by date (oldest to latest). The year is taken from the oldest row.
    """
    def __init__(self, config):
        super().__init__(config)
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, transactions):
        if not transactions:
            logger.info("No transactions to write.")
            return None

        sorted_rows = sorted(transactions, key=lambda r: (r['date'], r.get('id') or 0))
        year = sorted_rows[0]['date'][:4]
        out_path = os.path.join(self.output_dir, f"Budget{year}.csv")

        with open(out_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(COLUMNS)
            for row in sorted_rows:
                writer.writerow([
                    row['date'],
                    row.get('name') or '',
                    row.get('description') or '',
                    row['budget_type'],
                    f"{float(row['amount']):.2f}",
                    'true' if row.get('paid_off') else 'false',
                ])

        logger.info("Written %d transactions to %s", len(sorted_rows), out_path)
        return out_path
