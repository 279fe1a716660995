"""
Position data models.

Three instrument kinds share the same attributes: a signed quantity
(positive = long, negative = short), a free-form description and an
active flag. Inactive positions are kept but excluded from every
aggregate calculation.

Invariants are enforced at construction time, so a Position that exists
can always be evaluated.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Union

from .errors import FieldError, InvalidPosition, InvalidPrice, InvalidQuantity


class PositionType(str, Enum):
    """Instrument kind of a position."""
    SPOT = "spot"
    OPTION = "option"
    FUTURES = "futures"


class OptionType(str, Enum):
    """Option kind."""
    CALL = "call"
    PUT = "put"


# ============================================================================
# Field checks
# ============================================================================

def _check_quantity(quantity: float) -> float:
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise InvalidQuantity(quantity)
    if not math.isfinite(quantity) or quantity == 0:
        raise InvalidQuantity(quantity)
    return float(quantity)


def _check_price(field: str, value: float, allow_zero: bool = False) -> float:
    """Validate a price-like field: finite and > 0 (or >= 0 when allow_zero)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidPrice(field, value)
    if value < 0 or (value == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise InvalidPrice(field, value, f"{field} must be {bound}, got {value!r}")
    return float(value)


def _fmt(value: float) -> str:
    """Compact number formatting for descriptions (100.0 -> '100')."""
    return f"{value:g}"


def _direction(quantity: float) -> str:
    return "Long" if quantity >= 0 else "Short"


# ============================================================================
# Shared behaviour
# ============================================================================

class PositionMixin(ABC):
    """Behaviour shared by every position kind."""

    kind: PositionType
    quantity: float
    description: str
    active: bool

    @property
    def is_active(self) -> bool:
        return self.active

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    def set_active(self, active: bool) -> None:
        self.active = bool(active)

    def toggle_active(self) -> None:
        self.active = not self.active

    @abstractmethod
    def evaluate(self, price: float) -> float:
        """Payoff of this position at the given underlying price."""

    @property
    @abstractmethod
    def upper_slope(self) -> float:
        """d(payoff)/d(price) as price -> infinity."""

    @property
    @abstractmethod
    def reference_price(self) -> float:
        """Strike or entry price used to size the auto chart range."""


# ============================================================================
# Concrete positions
# ============================================================================

@dataclass
class SpotPosition(PositionMixin):
    """Direct holding of the underlying asset."""
    quantity: float
    entry_price: float
    description: str = ""
    active: bool = True

    kind = PositionType.SPOT

    def __post_init__(self):
        self.quantity = _check_quantity(self.quantity)
        self.entry_price = _check_price("entry_price", self.entry_price)
        if not self.description:
            self.description = (
                f"{_direction(self.quantity)} {_fmt(abs(self.quantity))} units @ {_fmt(self.entry_price)}"
            )

    def evaluate(self, price: float) -> float:
        # P&L = quantity * (price - entry)
        return self.quantity * (price - self.entry_price)

    @property
    def upper_slope(self) -> float:
        return self.quantity

    @property
    def reference_price(self) -> float:
        return self.entry_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "description": self.description,
            "active": self.active,
        }


@dataclass
class OptionPosition(PositionMixin):
    """
    Call or put held to expiry.

    premium is always a positive magnitude; the sign of quantity decides
    whether it was paid (long) or received (short).
    """
    option_type: OptionType
    quantity: float
    strike_price: float
    premium: float
    description: str = ""
    active: bool = True

    kind = PositionType.OPTION

    def __post_init__(self):
        try:
            self.option_type = OptionType(self.option_type)
        except ValueError:
            raise InvalidPosition([
                FieldError("option_type", f"must be 'call' or 'put', got {self.option_type!r}")
            ]) from None
        self.quantity = _check_quantity(self.quantity)
        self.strike_price = _check_price("strike_price", self.strike_price)
        self.premium = _check_price("premium", self.premium, allow_zero=True)
        if not self.description:
            self.description = (
                f"{_direction(self.quantity)} {_fmt(abs(self.quantity))} "
                f"{self.option_type.value.capitalize()} @ Strike {_fmt(self.strike_price)} "
                f"Premium {_fmt(self.premium)}"
            )

    @property
    def is_call(self) -> bool:
        return self.option_type == OptionType.CALL

    def intrinsic_value(self, price: float) -> float:
        if self.is_call:
            return max(price - self.strike_price, 0.0)
        return max(self.strike_price - price, 0.0)

    def evaluate(self, price: float) -> float:
        # Long perspective per unit, the sign of quantity flips it for shorts
        return self.quantity * (self.intrinsic_value(price) - self.premium)

    @property
    def upper_slope(self) -> float:
        # Puts are worthless once price is above the strike
        return self.quantity if self.is_call else 0.0

    @property
    def reference_price(self) -> float:
        return self.strike_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "option_type": self.option_type.value,
            "quantity": self.quantity,
            "strike_price": self.strike_price,
            "premium": self.premium,
            "description": self.description,
            "active": self.active,
        }


@dataclass
class FuturesPosition(PositionMixin):
    """Futures contract with a contract-size multiplier."""
    quantity: float
    entry_price: float
    contract_size: float = 1.0
    description: str = ""
    active: bool = True

    kind = PositionType.FUTURES

    def __post_init__(self):
        self.quantity = _check_quantity(self.quantity)
        self.entry_price = _check_price("entry_price", self.entry_price)
        self.contract_size = _check_price("contract_size", self.contract_size)
        if not self.description:
            self.description = (
                f"{_direction(self.quantity)} {_fmt(abs(self.quantity))} Futures @ "
                f"{_fmt(self.entry_price)} (Size: {_fmt(self.contract_size)})"
            )

    @property
    def notional_quantity(self) -> float:
        """Underlying-equivalent exposure."""
        return self.quantity * self.contract_size

    def evaluate(self, price: float) -> float:
        # P&L = quantity * contract_size * (price - entry)
        return self.notional_quantity * (price - self.entry_price)

    @property
    def upper_slope(self) -> float:
        return self.notional_quantity

    @property
    def reference_price(self) -> float:
        return self.entry_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "contract_size": self.contract_size,
            "description": self.description,
            "active": self.active,
        }


Position = Union[SpotPosition, OptionPosition, FuturesPosition]


def active_positions(positions: List[Position]) -> List[Position]:
    """Positions included in aggregate calculations, in input order."""
    return [p for p in positions if p.is_active]
