# budget_tracker/loaders/spreadsheet.py

from pathlib import Path

import pandas as pd

from budget_tracker.core.models import REQUIRED_FIELDS, TransactionValidationError, parse_transaction
from budget_tracker.loaders.base import BaseLoader

# Header spellings seen in exported budget sheets
_COLUMN_ALIASES = {
    "category": "budget_type",
    "budget type": "budget_type",
    "budgettype": "budget_type",
    "payedoff": "paid_off",
    "paidoff": "paid_off",
    "paid off": "paid_off",
    "paid": "paid_off",
    "merchant": "name",
}


def _normalize_column(column):
    key = str(column).strip().lower()
    return _COLUMN_ALIASES.get(key, key.replace(" ", "_"))


class SpreadsheetLoader(BaseLoader):
    """
    Loader for budget spreadsheets exported as CSV or Excel (.xlsx).
    Expected header row (case-insensitive, common aliases accepted):
      date, name, description, budget_type, amount, paid_off

    Each row is validated like an API request. The first invalid row aborts
    the load with its 1-based spreadsheet row number.
    """
    def load(self, file_path):
        path = Path(file_path)
        suffix = path.suffix.lower()
        if suffix == '.csv':
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        elif suffix in ('.xlsx', '.xlsm'):
            df = pd.read_excel(path, engine='openpyxl')
        else:
            raise ValueError(f"Unsupported file format: {path.name}")

        df.columns = [_normalize_column(c) for c in df.columns]
        missing = [c for c in REQUIRED_FIELDS if c not in df.columns]
        if missing:
            raise ValueError(f"{path.name} is missing column(s): {', '.join(missing)}")

        # row 1 is the header
        for row_number, raw in enumerate(df.to_dict(orient='records'), start=2):
            # NaN cells from Excel count as blank
            record = {k: (None if pd.isna(v) else v) for k, v in raw.items()}
            if all(v is None or str(v).strip() == '' for v in record.values()):
                continue
            try:
                yield parse_transaction(record)
            except TransactionValidationError as e:
                raise ValueError(f"Row {row_number} in {path.name}: {e}") from e
