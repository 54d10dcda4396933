"""Exception types for the trade slip engine.

Pricing errors subclass the builtin they replace (`ValueError`,
`ArithmeticError`) so callers that only know the kernel contract keep
working.
"""

from __future__ import annotations


class TradeSlipError(Exception):
    """Base class for engine errors."""


class InfeasibleQuantityError(TradeSlipError, ValueError):
    """Raised when a requested size lies outside a pricing formula's domain."""


class NonFiniteResultError(TradeSlipError, ArithmeticError):
    """Raised when degenerate inputs (zero weight, empty reserve) make a formula undefined."""


class SubmissionError(TradeSlipError):
    """Raised when the chain client rejects a batch. `reason` is passed through unchanged."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class StaleSnapshotError(TradeSlipError):
    """Raised when a batch no longer matches the displayed derived state."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"batch built from revision {actual}, displayed revision is {expected}")
