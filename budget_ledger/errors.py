from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Bad or missing user input: empty name, non-positive amount, bad date."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class RecordIndexError(LedgerError, IndexError):
    """An operation referenced a record position that no longer exists."""


class NotFoundError(LedgerError):
    """No data exists for the requested month."""


class EmptyError(LedgerError):
    """There is nothing to export."""


class StorageError(LedgerError):
    """The ledger database could not be written; the change was discarded."""


@dataclass(frozen=True)
class Result:
    """Outcome of a store or exporter operation.

    Failures carry the error instance so callers can branch on its type and
    show ``message`` to the user; state is unchanged when ``ok`` is False.
    """

    ok: bool
    value: Any = None
    error: LedgerError | None = None

    @classmethod
    def success(cls, value: Any = None) -> Result:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LedgerError) -> Result:
        return cls(ok=False, error=error)

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ""

    def __bool__(self) -> bool:
        return self.ok


def ledger_operation(func: Callable[..., Any]) -> Callable[..., Result]:
    """Wrap a method so ledger errors come back as a failed Result."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Result:
        try:
            value = func(*args, **kwargs)
        except LedgerError as exc:
            logger.debug("%s rejected: %s", func.__name__, exc.message)
            return Result.failure(exc)
        return Result.success(value)

    return wrapper
