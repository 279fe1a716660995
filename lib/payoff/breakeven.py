"""
Breakeven Finder

Scans a payoff curve for zero crossings.

1. Walk consecutive samples; a pair with strictly opposite signs brackets
   a breakeven.
2. Linear interpolation gives the first estimate. The payoff is piecewise
   linear, so the estimate is exact unless a strike sits inside the bracket.
3. If |payoff(estimate)| is above precision, bisect the bracket until it
   is not (or max_refine_iterations is reached).

A sample with |payoff| <= precision is treated as zero: it is a breakeven
at that price, and a run of such samples counts once, at the start of the
run.
"""

import logging
import sys
from typing import List, Optional, Sequence

from .config import EngineConfig, resolve_config
from .curve import PayoffPoint, generate
from .evaluator import evaluate_portfolio
from .positions import Position, active_positions

logger = logging.getLogger(__name__)


def interpolate_zero_crossing(x1: float, y1: float, x2: float, y2: float) -> float:
    """Linear interpolation of where the line through (x1, y1), (x2, y2) crosses zero."""
    if abs(y2 - y1) < sys.float_info.epsilon:
        return x1  # Flat segment, avoid division by zero

    x = x1 + (0.0 - y1) * (x2 - x1) / (y2 - y1)
    return min(max(x, min(x1, x2)), max(x1, x2))


def refine_breakeven(
    positions: Sequence[Position],
    low: float,
    high: float,
    precision: float,
    max_iterations: int,
) -> float:
    """
    Narrow a bracketing interval [low, high] down to a zero of the portfolio payoff.

    payoff(low) and payoff(high) must have opposite signs.
    """
    f_low = evaluate_portfolio(positions, low)
    f_high = evaluate_portfolio(positions, high)

    estimate = interpolate_zero_crossing(low, f_low, high, f_high)
    if abs(evaluate_portfolio(positions, estimate)) <= precision:
        return estimate

    for _ in range(max_iterations):
        mid = (low + high) / 2
        f_mid = evaluate_portfolio(positions, mid)
        if abs(f_mid) <= precision:
            return mid
        if (f_mid < 0) == (f_low < 0):
            low, f_low = mid, f_mid
        else:
            high = mid

    return (low + high) / 2


def find_breakevens_in_curve(
    curve: Sequence[PayoffPoint],
    positions: Optional[Sequence[Position]] = None,
    precision: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> List[float]:
    """
    Find breakeven prices in an already generated curve.

    Args:
        curve: Payoff points ascending by price
        positions: Portfolio the curve was built from. When given, each
            bracketed crossing is refined against the real payoff; when
            omitted, plain linear interpolation is used.
        precision: |payoff| at or below which a sample counts as zero,
            also the tolerance for refinement
        config: Engine configuration

    Returns:
        Ascending list of breakeven prices
    """
    config = resolve_config(config)
    if precision is None:
        precision = config.breakeven_precision

    breakevens: List[float] = []
    if not curve:
        return breakevens

    def is_zero(payoff: float) -> bool:
        return abs(payoff) <= precision

    prev = curve[0]
    in_zero_run = is_zero(prev.payoff)
    if in_zero_run:
        breakevens.append(prev.price)

    for point in curve[1:]:
        if is_zero(point.payoff):
            if not in_zero_run:
                breakevens.append(point.price)
            in_zero_run = True
        else:
            if not in_zero_run and (prev.payoff < 0) != (point.payoff < 0):
                if positions is not None:
                    breakeven = refine_breakeven(
                        positions, prev.price, point.price, precision, config.max_refine_iterations
                    )
                else:
                    breakeven = interpolate_zero_crossing(
                        prev.price, prev.payoff, point.price, point.payoff
                    )
                breakevens.append(breakeven)
            in_zero_run = False
        prev = point

    return breakevens


def find_breakevens(
    positions: Sequence[Position],
    start_price: float,
    end_price: float,
    precision: Optional[float] = None,
    step: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> List[float]:
    """
    Find breakeven points for the portfolio within [start_price, end_price].

    Args:
        positions: Portfolio (inactive positions are ignored)
        start_price: Low end of the scanned range
        end_price: High end of the scanned range
        precision: |payoff| tolerance for refinement (default from config)
        step: Scan resolution; defaults to the range split into
            config.breakeven_samples intervals
        config: Engine configuration

    Returns:
        Ascending list of breakeven prices. Empty when no position is active.
    """
    config = resolve_config(config)
    positions = list(positions)

    if not active_positions(positions):
        return []

    if step is None:
        span = end_price - start_price
        step = span / config.breakeven_samples if span > 0 else 1.0

    curve = generate(positions, start_price, end_price, step, config)
    breakevens = find_breakevens_in_curve(curve, positions, precision, config)

    logger.debug(f"Found {len(breakevens)} breakeven(s) in [{start_price}, {end_price}]: {breakevens}")
    return breakevens
