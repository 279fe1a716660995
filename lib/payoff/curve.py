"""
Curve Generator

Samples the aggregate payoff over [start_price, end_price] at a fixed step.

Sampling policy: prices start at start_price and advance by step while they
stay below end_price; the last sample is always exactly end_price. A sample
that lands within 1e-9 * step of end_price is snapped to it instead of
producing a near-duplicate. Prices are computed as start + i * step to avoid
accumulating rounding error.

    generate(positions, 90, 110, 5)  -> prices 90, 95, 100, 105, 110
    generate(positions, 0, 10, 3)    -> prices 0, 3, 6, 9, 10
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .config import EngineConfig, resolve_config
from .errors import InvalidRange, SampleLimitExceeded
from .evaluator import check_price, evaluate_portfolio
from .positions import Position

logger = logging.getLogger(__name__)

SNAP_TOLERANCE = 1e-9


@dataclass(frozen=True)
class PayoffPoint:
    """One sample of the aggregate payoff curve."""
    price: float
    payoff: float

    def to_dict(self) -> Dict[str, float]:
        return {"price": self.price, "payoff": self.payoff}


def _plan_samples(start_price: float, end_price: float, step: float) -> Tuple[float, bool]:
    """
    Work out how many whole steps fit in the range.

    Returns:
        (full_steps, snapped) where snapped means the last whole step
        already lands on end_price. full_steps is a float so overflowing
        ranges can be reported without raising.
    """
    start_price = check_price(start_price, "start_price")
    end_price = check_price(end_price, "end_price")

    if isinstance(step, bool) or not isinstance(step, (int, float)) or not math.isfinite(step) or step <= 0:
        raise InvalidRange(start_price, end_price, step, f"Step size must be a positive finite number, got {step!r}")

    if start_price > end_price:
        raise InvalidRange(
            start_price, end_price, step,
            f"Start price {start_price} must not exceed end price {end_price}",
        )

    span = end_price - start_price
    if span == 0:
        return 0.0, True

    ratio = span / step
    if not math.isfinite(ratio):
        return ratio, False

    full_steps = float(math.floor(ratio))
    last = start_price + full_steps * step
    snapped = last >= end_price or (end_price - last) <= step * SNAP_TOLERANCE
    return full_steps, snapped


def count_samples(start_price: float, end_price: float, step: float) -> float:
    """Number of points generate() would produce for this range (inf if unbounded)."""
    full_steps, snapped = _plan_samples(start_price, end_price, step)
    return full_steps + 1 if snapped else full_steps + 2


def sample_prices(
    start_price: float,
    end_price: float,
    step: float,
    config: Optional[EngineConfig] = None,
) -> List[float]:
    """
    Ascending sample prices for a range, end_price included.

    Raises:
        InvalidPrice: start or end is negative or non-finite
        InvalidRange: start > end or step <= 0
        SampleLimitExceeded: more than config.max_samples points
    """
    config = resolve_config(config)
    full_steps, snapped = _plan_samples(start_price, end_price, step)
    requested = full_steps + 1 if snapped else full_steps + 2

    if not math.isfinite(requested) or requested > config.max_samples:
        logger.warning(
            f"Rejected price range [{start_price}, {end_price}] step {step}: "
            f"{requested:,.0f} samples exceeds limit {config.max_samples:,}"
        )
        raise SampleLimitExceeded(requested, config.max_samples)

    start_price = float(start_price)
    end_price = float(end_price)
    prices = [start_price + i * step for i in range(int(full_steps) + 1)]
    if snapped:
        prices[-1] = end_price
    else:
        prices.append(end_price)

    return prices


def generate(
    positions: Iterable[Position],
    start_price: float,
    end_price: float,
    step: float,
    config: Optional[EngineConfig] = None,
) -> List[PayoffPoint]:
    """
    Generate payoff points across a price range.

    Args:
        positions: Portfolio (inactive positions contribute nothing)
        start_price: First sampled price
        end_price: Last sampled price (always included)
        step: Distance between consecutive samples
        config: Engine configuration (sample cap)

    Returns:
        List of PayoffPoint ascending by price, without duplicates

    The curve is built in full or not at all; errors from sample_prices
    propagate before any point is evaluated.
    """
    prices = sample_prices(start_price, end_price, step, config)
    positions = list(positions)

    points = [PayoffPoint(price=price, payoff=evaluate_portfolio(positions, price)) for price in prices]

    logger.debug(
        f"Generated {len(points)} payoff points over [{start_price}, {end_price}] step {step}"
    )
    return points
