"""Ledger record types and the small parsing/formatting helpers they share."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .errors import ValidationError

STORAGE_DATE_FORMAT = "%Y-%m-%d %H:%M"
MONTH_LABEL_FORMAT = "%B %Y"
RECURRING_NAMES = (("rent", "Rent"), ("food", "Food"), ("wifi", "Wifi"))


def month_label(moment: datetime) -> str:
    """Human-readable month key, e.g. ``"March 2025"``."""
    return moment.strftime(MONTH_LABEL_FORMAT)


def parse_month_label(label: str) -> datetime | None:
    try:
        return datetime.strptime(label, MONTH_LABEL_FORMAT)
    except (TypeError, ValueError):
        return None


def format_amount(value: float) -> str:
    """Render an amount without a trailing ``.0`` for whole numbers."""
    value = float(value)
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def parse_amount(value: Any) -> float:
    """Return ``value`` as a positive finite float or raise ValidationError."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("Amount is required", field="amount")
    try:
        amount = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Amount is not a number: {value!r}", field="amount") from None
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Amount must be a positive number", field="amount")
    return amount


def clamp_non_negative(value: Any) -> float:
    """Coerce ``value`` to a float, mapping negatives and non-numbers to 0."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def parse_name(value: Any) -> str:
    name = "" if value is None else str(value).strip()
    if not name:
        raise ValidationError("Name must not be empty", field="name")
    return name


def clean_note(value: Any) -> str | None:
    if value is None:
        return None
    note = str(value).strip()
    return note or None


def normalize_date(value: Any) -> str:
    """Normalize a datetime or ISO-like string to ``YYYY-MM-DD HH:MM``.

    Accepts what a datetime input produces (``2025-03-05T14:30``) as well as
    the stored form and variants with seconds.
    """
    if isinstance(value, datetime):
        return value.strftime(STORAGE_DATE_FORMAT)
    text = str(value or "").strip()
    if not text:
        raise ValidationError("Date must not be empty", field="date")
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Unrecognised date: {text!r}", field="date") from None
    return moment.strftime(STORAGE_DATE_FORMAT)


@dataclass(frozen=True)
class FixedExpense:
    name: str
    amount: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FixedExpense:
        return cls(name=parse_name(data.get("name")), amount=parse_amount(data.get("amount")))


@dataclass(frozen=True)
class ExtraExpense:
    name: str
    amount: float
    date: str
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "amount": self.amount, "date": self.date}
        if self.note:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtraExpense:
        # Stored dates are kept as-is so older hand-edited values survive a load
        date = data.get("date")
        if not isinstance(date, str) or not date.strip():
            raise ValidationError("Date must not be empty", field="date")
        return cls(
            name=parse_name(data.get("name")),
            amount=parse_amount(data.get("amount")),
            date=date,
            note=clean_note(data.get("note")),
        )


@dataclass(frozen=True)
class Recurring:
    rent: float = 0.0
    food: float = 0.0
    wifi: float = 0.0

    def template(self) -> list[FixedExpense]:
        """Fixed entries for every category with a strictly positive amount."""
        entries = []
        for key, display_name in RECURRING_NAMES:
            amount = getattr(self, key)
            if amount > 0:
                entries.append(FixedExpense(display_name, amount))
        return entries

    def to_dict(self) -> dict[str, float]:
        return {"rent": self.rent, "food": self.food, "wifi": self.wifi}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Recurring:
        return cls(
            rent=clamp_non_negative(data.get("rent")),
            food=clamp_non_negative(data.get("food")),
            wifi=clamp_non_negative(data.get("wifi")),
        )


@dataclass
class MonthRecord:
    fixed: list[FixedExpense] = field(default_factory=list)
    extra: list[ExtraExpense] = field(default_factory=list)
    budget: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "fixed": [item.to_dict() for item in self.fixed],
            "extra": [item.to_dict() for item in self.extra],
            "budget": self.budget,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MonthRecord:
        budget = data.get("budget")
        try:
            budget = float(budget)
        except (TypeError, ValueError):
            budget = 0.0
        return cls(
            fixed=load_records(data.get("fixed"), FixedExpense),
            extra=load_records(data.get("extra"), ExtraExpense),
            budget=budget if math.isfinite(budget) else 0.0,
        )


@dataclass(frozen=True)
class Summary:
    total_fixed: float
    total_extra: float
    remaining: float


@dataclass(frozen=True)
class RolloverNotice:
    archived_month: str
    current_month: str

    @property
    def message(self) -> str:
        return (
            f"New month detected! Saved {self.archived_month} to history "
            f"and started fresh for {self.current_month}."
        )


def load_records(raw: Any, record_type) -> list:
    """Build records from decoded JSON, skipping entries that do not validate."""
    if not isinstance(raw, list):
        return []
    records = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            records.append(record_type.from_dict(entry))
        except ValidationError:
            continue
    return records
