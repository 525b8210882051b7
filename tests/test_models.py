from __future__ import annotations

from datetime import datetime

import pytest

from budget_ledger.errors import ValidationError
from budget_ledger.models import (
    ExtraExpense,
    MonthRecord,
    Recurring,
    format_amount,
    month_label,
    normalize_date,
    parse_amount,
)


@pytest.mark.parametrize("value, expected", [(4000.0, "4000"), (12.5, "12.5"), (0.1 + 0.2, "0.30000000000000004")])
def test_format_amount(value, expected):
    assert format_amount(value) == expected


def test_parse_amount_accepts_numeric_text():
    assert parse_amount(" 42.5 ") == 42.5


@pytest.mark.parametrize("value", [True, "", "1e400", "-0.5"])
def test_parse_amount_rejects(value):
    with pytest.raises(ValidationError):
        parse_amount(value)


def test_month_label():
    assert month_label(datetime(2025, 3, 1)) == "March 2025"


def test_normalize_date_accepts_datetime():
    assert normalize_date(datetime(2025, 3, 1, 7, 5, 59)) == "2025-03-01 07:05"


def test_recurring_template_skips_zero_categories():
    template = Recurring(rent=0, food=10, wifi=0).template()

    assert [(item.name, item.amount) for item in template] == [("Food", 10)]


def test_month_record_from_dict_skips_malformed_entries():
    record = MonthRecord.from_dict(
        {
            "fixed": [{"name": "Rent", "amount": 4000}, {"name": "Bad", "amount": -1}],
            "extra": [{"name": "Taxi", "amount": 9, "date": "2025-01-02 10:00", "note": ""}],
            "budget": "oops",
        }
    )

    assert [item.name for item in record.fixed] == ["Rent"]
    assert record.extra == [ExtraExpense("Taxi", 9.0, "2025-01-02 10:00", None)]
    assert record.budget == 0.0
