"""Typed outcome of a mutating ledger operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from sportsbook.ledger.errors import LedgerError

T = TypeVar("T")


@dataclass(frozen=True)
class OpResult(Generic[T]):
    """Either a value (ok) or the LedgerError that rejected the operation."""

    value: T | None = None
    error: LedgerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> OpResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: LedgerError) -> OpResult[T]:
        return cls(error=error)
