"""
Error kinds raised by the payoff engine.

All errors derive from PayoffError, which is a ValueError so callers that
only care about "bad input" can catch the builtin.
"""

from typing import List, NamedTuple, Optional


class FieldError(NamedTuple):
    """A single validation failure tied to an input field."""
    field: str
    message: str


class PayoffError(ValueError):
    """Base exception for all payoff engine errors."""

    pass


class InvalidQuantity(PayoffError):
    """Position quantity is zero or not a finite number."""

    def __init__(self, quantity: float, message: Optional[str] = None):
        super().__init__(message or f"Quantity must be a non-zero finite number, got {quantity!r}")
        self.quantity = quantity


class InvalidPrice(PayoffError):
    """A price-like value is negative, non-finite, or out of its allowed domain."""

    def __init__(self, field: str, value: float, message: Optional[str] = None):
        super().__init__(message or f"{field} must be a finite non-negative number, got {value!r}")
        self.field = field
        self.value = value


class InvalidRange(PayoffError):
    """Price range or step is unusable (start > end, step <= 0)."""

    def __init__(self, start_price: float, end_price: float, step: float, message: Optional[str] = None):
        super().__init__(
            message
            or f"Invalid price range: start={start_price!r}, end={end_price!r}, step={step!r}"
        )
        self.start_price = start_price
        self.end_price = end_price
        self.step = step


class SampleLimitExceeded(PayoffError):
    """Range and step would produce more samples than the configured cap."""

    def __init__(self, requested: float, limit: int):
        super().__init__(
            f"Price range would produce {requested:,.0f} samples (limit {limit:,}); "
            f"increase the step size or narrow the range"
        )
        self.requested = requested
        self.limit = limit


class InvalidPosition(PayoffError):
    """Raw position data failed schema validation."""

    def __init__(self, errors: List[FieldError]):
        summary = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Invalid position: {summary}")
        self.errors = errors
