"""
Payoff Evaluator

P&L of one position, or of a portfolio, at a single underlying price.

    Spot:      quantity * (price - entry_price)
    Call:      quantity * (max(price - strike, 0) - premium)
    Put:       quantity * (max(strike - price, 0) - premium)
    Futures:   quantity * contract_size * (price - entry_price)

Query prices must be finite and non-negative; anything else raises
InvalidPrice rather than being clamped.
"""

import math
from typing import Iterable

from .errors import InvalidPrice
from .positions import Position


def check_price(price: float, field: str = "price") -> float:
    """Validate a query price and return it as float."""
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise InvalidPrice(field, price)
    if not math.isfinite(price) or price < 0:
        raise InvalidPrice(field, price)
    return float(price)


def evaluate(position: Position, price: float) -> float:
    """
    Calculate payoff for a single position at a given underlying price.

    The active flag is ignored here; filtering happens in evaluate_portfolio.
    """
    return position.evaluate(check_price(price))


def evaluate_portfolio(positions: Iterable[Position], price: float) -> float:
    """
    Sum of payoffs over active positions.

    Returns 0.0 for an empty or all-inactive portfolio.
    """
    price = check_price(price)
    return sum(
        (pos.evaluate(price) for pos in positions if pos.is_active),
        0.0,
    )
