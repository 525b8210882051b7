"""Ledger state, its month rollover and its persistence.

A ``LedgerStore`` owns the current month's fixed and extra expenses, the
budget, the recurring template and the archive of past months. Every
mutation is written to the key-value repository before the method returns.
Operations that can fail on user input return a ``Result`` instead of
raising.
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable

from .config import LedgerDefaults
from .errors import RecordIndexError, StorageError, ValidationError, ledger_operation
from .models import (
    ExtraExpense,
    FixedExpense,
    MonthRecord,
    Recurring,
    RolloverNotice,
    Summary,
    clamp_non_negative,
    clean_note,
    format_amount,
    load_records,
    month_label,
    normalize_date,
    parse_amount,
    parse_month_label,
    parse_name,
)
from .repository import KeyValueRepository

logger = logging.getLogger(__name__)

KEY_FIXED = "fixedExpenses"
KEY_EXTRA = "extraExpenses"
KEY_BUDGET = "totalBudget"
KEY_HISTORY = "history"
KEY_RECURRING = "recurring"
KEY_LAST_MONTH = "lastMonthKey"
KEY_THEME = "theme"

THEMES = ("light", "dark")
DEFAULT_THEME = "light"


class LedgerStore:
    def __init__(
        self,
        repository: KeyValueRepository,
        clock: Callable[[], datetime] = datetime.now,
        defaults: LedgerDefaults | None = None,
    ):
        self.repository = repository
        self.defaults = defaults or LedgerDefaults()
        self._clock = clock
        self._fixed: list[FixedExpense] = []
        self._extra: list[ExtraExpense] = []
        self._budget: float = self.defaults.default_budget
        self._history: dict[str, MonthRecord] = {}
        self._recurring = self._default_recurring()
        self._last_month_key: str | None = None
        self._current_month: str | None = None
        self._theme = DEFAULT_THEME
        self._pending_notice: RolloverNotice | None = None

    # ------------------------------------------------------------------
    # Lifecycle

    def initialize(self, now_month_label: str | None = None) -> RolloverNotice | None:
        """Load persisted state, then roll over to ``now_month_label``."""
        self.load()
        return self.rollover(now_month_label or month_label(self._clock()))

    def load(self) -> None:
        stored = self.repository.load_all()
        self._fixed = load_records(self._decode(stored, KEY_FIXED), FixedExpense)
        self._extra = load_records(self._decode(stored, KEY_EXTRA), ExtraExpense)
        self._budget = self._decode_budget(stored.get(KEY_BUDGET))
        self._history = self._decode_history(self._decode(stored, KEY_HISTORY))

        recurring = self._decode(stored, KEY_RECURRING)
        self._recurring = Recurring.from_dict(recurring) if isinstance(recurring, dict) else self._default_recurring()

        last_month = stored.get(KEY_LAST_MONTH)
        if isinstance(last_month, str) and last_month.strip():
            self._last_month_key = last_month.strip()
        else:
            self._last_month_key = None

        theme = stored.get(KEY_THEME)
        self._theme = theme if theme in THEMES else DEFAULT_THEME
        logger.debug(
            "Loaded ledger: %d fixed, %d extra, %d archived months",
            len(self._fixed),
            len(self._extra),
            len(self._history),
        )

    def rollover(self, now_month_label: str) -> RolloverNotice | None:
        """Archive the previous month when the month label has changed.

        Returns a notice naming the archived month, or None when nothing was
        archived. The notice is also kept for a single ``consume_notice`` call.
        """
        notice = None
        with self._saving():
            last_month = self._last_month_key
            if last_month and last_month != now_month_label:
                self._history[last_month] = MonthRecord(list(self._fixed), list(self._extra), self._budget)
                restored = self._history.pop(now_month_label, None)
                if restored is not None:
                    # The clock moved back onto an archived month: resume it
                    self._fixed = list(restored.fixed)
                    self._extra = list(restored.extra)
                    self._budget = restored.budget if restored.budget > 0 else self._budget
                else:
                    self._fixed = []
                    self._extra = []
                    self._prepend_template()
                notice = RolloverNotice(last_month, now_month_label)
                logger.info("Archived %s and started %s", last_month, now_month_label)
            else:
                stale = self._history.pop(now_month_label, None)
                if stale is not None:
                    # An archive of the live month: fold its records back in
                    self._fixed = list(stale.fixed) + self._fixed
                    self._extra = list(stale.extra) + self._extra
                    logger.warning("Merged archived records of %s into the current month", now_month_label)
                if not last_month and not self._fixed:
                    self._prepend_template()
                    logger.info("First run for %s, seeded recurring expenses", now_month_label)
            self._current_month = now_month_label
        if notice is not None:
            self._pending_notice = notice
        return notice

    def consume_notice(self) -> RolloverNotice | None:
        notice, self._pending_notice = self._pending_notice, None
        return notice

    # ------------------------------------------------------------------
    # Queries

    @property
    def current_month(self) -> str:
        if self._current_month is None:
            self._current_month = month_label(self._clock())
        return self._current_month

    @property
    def last_month_key(self) -> str | None:
        return self._last_month_key

    @property
    def fixed_expenses(self) -> tuple[FixedExpense, ...]:
        return tuple(self._fixed)

    @property
    def extra_expenses(self) -> tuple[ExtraExpense, ...]:
        return tuple(self._extra)

    @property
    def total_budget(self) -> float:
        return self._budget

    @property
    def recurring(self) -> Recurring:
        return self._recurring

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def history(self) -> dict[str, MonthRecord]:
        return {label: self._copy_record(record) for label, record in self._history.items()}

    def month_record(self, label: str) -> MonthRecord | None:
        """The live record for the current month, or an archived one."""
        if label == self.current_month:
            return MonthRecord(list(self._fixed), list(self._extra), self._budget)
        record = self._history.get(label)
        return self._copy_record(record) if record is not None else None

    def available_months(self) -> list[str]:
        """Current month first, then archived months most recent first."""

        def recency(label: str):
            moment = parse_month_label(label)
            return (1, 0) if moment is None else (0, -(moment.year * 12 + moment.month))

        return [self.current_month] + sorted(self._history, key=recency)

    def compute_summary(self) -> Summary:
        total_fixed = sum(item.amount for item in self._fixed)
        total_extra = sum(item.amount for item in self._extra)
        return Summary(total_fixed, total_extra, self._budget - (total_fixed + total_extra))

    # ------------------------------------------------------------------
    # Fixed expenses

    @ledger_operation
    def add_fixed(self, name, amount) -> FixedExpense:
        expense = FixedExpense(parse_name(name), parse_amount(amount))
        with self._saving():
            self._fixed.append(expense)
        return expense

    @ledger_operation
    def edit_fixed(self, index, name, amount) -> FixedExpense:
        self._check_index(self._fixed, index)
        expense = FixedExpense(parse_name(name), parse_amount(amount))
        with self._saving():
            self._fixed[index] = expense
        return expense

    @ledger_operation
    def delete_fixed(self, index) -> FixedExpense:
        self._check_index(self._fixed, index)
        with self._saving():
            expense = self._fixed.pop(index)
        return expense

    # ------------------------------------------------------------------
    # Extra expenses

    @ledger_operation
    def add_extra(self, name, amount, date=None, note=None) -> ExtraExpense:
        name = parse_name(name)
        amount = parse_amount(amount)
        if date is None or (isinstance(date, str) and not date.strip()):
            date = self._clock()
        expense = ExtraExpense(name, amount, normalize_date(date), clean_note(note))
        with self._saving():
            self._extra.append(expense)
        return expense

    @ledger_operation
    def edit_extra(self, index, name, amount, date, note=None) -> ExtraExpense:
        self._check_index(self._extra, index)
        expense = ExtraExpense(parse_name(name), parse_amount(amount), normalize_date(date), clean_note(note))
        with self._saving():
            self._extra[index] = expense
        return expense

    @ledger_operation
    def delete_extra(self, index) -> ExtraExpense:
        self._check_index(self._extra, index)
        with self._saving():
            expense = self._extra.pop(index)
        return expense

    def sort_extra_by_amount(self, descending: bool) -> None:
        with self._saving():
            # list.sort is stable in both directions
            self._extra.sort(key=lambda item: item.amount, reverse=bool(descending))

    # ------------------------------------------------------------------
    # Budget, recurring template, theme

    @ledger_operation
    def set_budget(self, amount) -> float:
        budget = parse_amount(amount)
        with self._saving():
            self._budget = budget
        return budget

    def set_recurring(self, rent, food, wifi) -> Recurring:
        with self._saving():
            self._recurring = Recurring(clamp_non_negative(rent), clamp_non_negative(food), clamp_non_negative(wifi))
        return self._recurring

    def apply_recurring_template(self) -> list[FixedExpense]:
        """Prepend the recurring entries to the fixed list.

        Not idempotent: each call adds another copy of the entries.
        """
        with self._saving():
            added = self._prepend_template()
        return added

    @ledger_operation
    def set_theme(self, name) -> str:
        if name not in THEMES:
            raise ValidationError(f"Unknown theme: {name!r}", field="theme")
        with self._saving(lambda: self.repository.set_item(KEY_THEME, name)):
            self._theme = name
        return name

    def toggle_theme(self) -> str:
        result = self.set_theme("dark" if self._theme == "light" else "light")
        if not result.ok:
            raise result.error
        return self._theme

    def reset_all(self) -> None:
        """Wipe every record and the whole storage, including foreign keys."""
        with self._saving(lambda: self.repository.replace_all(self._serialize())):
            self._fixed = []
            self._extra = []
            self._history = {}
            self._budget = self.defaults.reset_budget
            self._recurring = self._default_recurring()
            self._theme = DEFAULT_THEME
            self._pending_notice = None
            self._last_month_key = self.current_month
        logger.info("Ledger reset; storage overwritten")

    # ------------------------------------------------------------------
    # Internals

    def _default_recurring(self) -> Recurring:
        return Recurring(self.defaults.recurring_rent, self.defaults.recurring_food, self.defaults.recurring_wifi)

    def _prepend_template(self) -> list[FixedExpense]:
        added = self._recurring.template()
        if added:
            self._fixed = added + self._fixed
        return added

    @staticmethod
    def _check_index(records: list, index) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(records):
            raise RecordIndexError(f"No record at position {index!r}")

    @staticmethod
    def _copy_record(record: MonthRecord) -> MonthRecord:
        return MonthRecord(list(record.fixed), list(record.extra), record.budget)

    def _serialize(self) -> dict[str, str]:
        return {
            KEY_FIXED: json.dumps([item.to_dict() for item in self._fixed]),
            KEY_EXTRA: json.dumps([item.to_dict() for item in self._extra]),
            KEY_BUDGET: format_amount(self._budget),
            KEY_HISTORY: json.dumps({label: record.to_dict() for label, record in self._history.items()}),
            KEY_RECURRING: json.dumps(self._recurring.to_dict()),
            KEY_LAST_MONTH: self.current_month,
        }

    def _persist(self) -> None:
        self._last_month_key = self.current_month
        self.repository.set_items(self._serialize())

    def _snapshot(self) -> tuple:
        return (
            list(self._fixed),
            list(self._extra),
            self._budget,
            dict(self._history),
            self._recurring,
            self._last_month_key,
            self._current_month,
            self._theme,
            self._pending_notice,
        )

    def _restore(self, snapshot: tuple) -> None:
        (
            self._fixed,
            self._extra,
            self._budget,
            self._history,
            self._recurring,
            self._last_month_key,
            self._current_month,
            self._theme,
            self._pending_notice,
        ) = snapshot

    @contextmanager
    def _saving(self, write: Callable[[], None] | None = None):
        """Apply the changes made in the block only if the write succeeds.

        On a sqlite failure the in-memory state is put back as it was and a
        ``StorageError`` is raised.
        """
        snapshot = self._snapshot()
        try:
            yield
            (write or self._persist)()
        except sqlite3.Error as exc:
            self._restore(snapshot)
            logger.error("Could not save ledger, changes discarded: %s", exc)
            raise StorageError(f"Could not save ledger: {exc}") from exc
        except BaseException:
            self._restore(snapshot)
            raise

    @staticmethod
    def _decode(stored: dict[str, str], key: str) -> Any:
        raw = stored.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring corrupt value stored under %s", key)
            return None

    def _decode_budget(self, raw: str | None) -> float:
        if raw is None:
            return self.defaults.default_budget
        try:
            budget = float(raw)
        except (TypeError, ValueError):
            budget = math.nan
        if not math.isfinite(budget) or budget <= 0:
            logger.warning("Ignoring invalid budget %r", raw)
            return self.defaults.default_budget
        return budget

    @staticmethod
    def _decode_history(raw: Any) -> dict[str, MonthRecord]:
        if not isinstance(raw, dict):
            return {}
        return {
            label: MonthRecord.from_dict(record)
            for label, record in raw.items()
            if isinstance(label, str) and isinstance(record, dict)
        }
