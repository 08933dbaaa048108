"""Typed ledger results.

Ledger operations never raise for a rejected precondition.  They return a
LedgerResult holding either the success value or exactly one LedgerError,
and the caller (router, CLI, collaborator) decides what to do with it.

The numeric codes are stable — collaborators match on them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger("chemtrace.ledger")


class LedgerError(IntEnum):
    NOT_AUTHORIZED = 100
    INVALID_BATCH = 101
    INVALID_STAGE = 102
    PAUSED = 103
    ZERO_ADDRESS = 104
    ALREADY_EXISTS = 105

    @property
    def retryable(self) -> bool:
        """Only PAUSED is transient; everything else is final."""
        return self is LedgerError.PAUSED

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    LedgerError.NOT_AUTHORIZED: "Caller is not authorized for this operation",
    LedgerError.INVALID_BATCH: "Batch does not exist or is no longer active",
    LedgerError.INVALID_STAGE: "Stage is not a recognised lifecycle stage",
    LedgerError.PAUSED: "Ledger mutations are paused",
    LedgerError.ZERO_ADDRESS: "A real identity is required",
    LedgerError.ALREADY_EXISTS: "Batch identifier already allocated",
}


@dataclass(frozen=True)
class LedgerResult(Generic[T]):
    """Outcome of one ledger operation.

    Invariant: a result carrying an error carries no value.  A successful
    result may legitimately hold a falsy value (e.g. `setPaused(False)`).
    """

    value: T | None = None
    error: LedgerError | None = None

    def __post_init__(self):
        if self.error is not None and self.value is not None:
            raise ValueError("A failed LedgerResult must not carry a value.")

    @classmethod
    def success(cls, value: T) -> "LedgerResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LedgerError) -> "LedgerResult[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def rejected(operation: str, error: LedgerError, caller, **context) -> LedgerResult:
    """Log a rejected precondition and wrap it in a failed result."""
    logger.info(
        f"{operation} rejected: {error.name}",
        extra={
            "operation": operation,
            "error_code": int(error),
            "caller": str(caller),
            **context,
        },
    )
    return LedgerResult.failure(error)
