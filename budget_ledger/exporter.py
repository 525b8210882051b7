import csv
import logging
from datetime import datetime
from pathlib import Path

import pandas as pd

from .errors import EmptyError, NotFoundError, ledger_operation
from .models import MonthRecord, format_amount
from .store import LedgerStore

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Month", "Type", "Name", "Amount", "Date", "Note"]
HISTORY_FILENAME = "expense_history.csv"
# Legacy display format: three spaces before the "T" marker
CSV_DATE_FORMAT = "%Y-%m-%d   T%H:%M"


def format_csv_date(value: str | None) -> str:
    if not value:
        return ""
    try:
        moment = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return moment.strftime(CSV_DATE_FORMAT)


def month_filename(label: str) -> str:
    return f"{label.replace(' ', '_')}.csv"


def month_rows(label: str, record: MonthRecord) -> list[list[str]]:
    rows = [[label, "Fixed", item.name, format_amount(item.amount), "", ""] for item in record.fixed]
    rows.extend(
        [label, "Extra", item.name, format_amount(item.amount), format_csv_date(item.date), item.note or ""]
        for item in record.extra
    )
    return rows


def rows_to_csv(rows: list[list[str]]) -> str:
    """Serialize rows under the standard header, newline separated, no trailing newline."""
    frame = pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=str)
    text = frame.to_csv(index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    return text.removesuffix("\n")


def deliver(csv_text: str, directory: Path | str, filename: str) -> Path:
    """Write an export next to the user's other files and return its path."""
    target = Path(directory) / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(csv_text, encoding="utf-8", newline="")
    logger.info("Exported %s", target)
    return target


class CsvExporter:
    def __init__(self, store: LedgerStore):
        self.store = store

    @ledger_operation
    def export_month(self, label: str) -> str:
        record = self.store.month_record(label)
        if record is None:
            raise NotFoundError("No data for the selected month.")
        return rows_to_csv(month_rows(label, record))

    @ledger_operation
    def export_all_history(self) -> str:
        history = self.store.history
        if not history:
            raise EmptyError("No history available yet!")
        rows = []
        for label, record in history.items():
            rows.extend(month_rows(label, record))
        return rows_to_csv(rows)
