"""
Range & Risk Analyzer

Summary statistics over a portfolio and its payoff curve:

- auto_range: chart window derived from strikes and entry prices
- max_profit / max_loss: extremes of the sampled curve (window-bound only)
- classify_risk: whether profit or loss is unbounded as price -> infinity
- analyze_portfolio: everything above in one PortfolioAnalysis

Usage:
    from lib.payoff.analyzer import analyze_portfolio

    analysis = analyze_portfolio(positions)
    print(format_analysis_summary(analysis))
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from .breakeven import find_breakevens_in_curve
from .config import EngineConfig, resolve_config
from .curve import PayoffPoint, generate
from .errors import PayoffError
from .positions import FuturesPosition, OptionPosition, Position, SpotPosition, active_positions

logger = logging.getLogger(__name__)

SLOPE_TOLERANCE = 1e-9

RiskMethod = Literal["slope", "exposure"]


class RiskProfile(str, Enum):
    """Which tails of the payoff are unbounded."""
    BOUNDED = "bounded"
    UNBOUNDED_UPSIDE = "unbounded_upside"      # Profit grows without bound
    UNBOUNDED_DOWNSIDE = "unbounded_downside"  # Loss grows without bound
    UNBOUNDED_BOTH = "unbounded_both"


class RiskLevel(str, Enum):
    """Risk severity levels."""
    LOW = "low"        # Limited profit, limited loss
    MEDIUM = "medium"  # Unlimited profit, limited loss
    HIGH = "high"      # Unlimited loss potential


# ============================================================================
# Auto Range
# ============================================================================

def auto_range(
    positions: Sequence[Position],
    config: Optional[EngineConfig] = None,
) -> Tuple[float, float]:
    """
    Compute a chart price range from active positions.

    Collects every strike (options) and entry price (spot, futures), then
    pads both ends by config.auto_range_padding * max(span, midpoint).
    A single price p with 30% padding gives (0.7p, 1.3p). The lower bound
    is floored at 0.

    Returns config.default_range when no position is active.
    """
    config = resolve_config(config)
    prices = [p.reference_price for p in active_positions(list(positions))]

    if not prices:
        logger.debug(f"No active positions, using default range {config.default_range}")
        return config.default_range

    lowest = min(prices)
    highest = max(prices)
    span = highest - lowest
    midpoint = (lowest + highest) / 2

    padding = config.auto_range_padding * max(span, midpoint)
    min_price = max(lowest - padding, 0.0)
    max_price = highest + padding

    logger.debug(
        f"Auto range from {len(prices)} price(s) [{lowest}, {highest}]: ({min_price}, {max_price})"
    )
    return min_price, max_price


# ============================================================================
# Curve Statistics
# ============================================================================

def max_profit(curve: Sequence[PayoffPoint]) -> Optional[float]:
    """Highest payoff within the sampled window, None for an empty curve."""
    if not curve:
        return None
    return max(point.payoff for point in curve)


def max_loss(curve: Sequence[PayoffPoint]) -> Optional[float]:
    """Lowest payoff within the sampled window, None for an empty curve."""
    if not curve:
        return None
    return min(point.payoff for point in curve)


def profit_probability(curve: Sequence[PayoffPoint]) -> Optional[float]:
    """Share of sampled prices with positive payoff (uniform price assumption)."""
    if not curve:
        return None
    profitable = sum(1 for point in curve if point.payoff > 0)
    return profitable / len(curve)


def expected_value(curve: Sequence[PayoffPoint]) -> Optional[float]:
    """Mean payoff over the samples (uniform price assumption)."""
    if not curve:
        return None
    return math.fsum(point.payoff for point in curve) / len(curve)


# ============================================================================
# Risk Classification
# ============================================================================

def upper_asymptotic_slope(positions: Sequence[Position]) -> float:
    """
    Slope of the aggregate payoff as price -> infinity.

    Every active position contributes its upper slope: spot quantity,
    futures quantity * contract size, call quantity. Puts are out of the
    money there and contribute nothing.
    """
    return math.fsum(p.upper_slope for p in active_positions(list(positions)))


def net_exposure(positions: Sequence[Position]) -> Dict[str, float]:
    """
    Net exposure buckets among active positions.

    Returns:
        {"linear", "long_call", "short_call", "long_put", "short_put"}
        linear is spot quantity plus futures quantity * contract size; the
        option buckets hold unsigned quantities.
    """
    exposure = {
        "linear": 0.0,
        "long_call": 0.0,
        "short_call": 0.0,
        "long_put": 0.0,
        "short_put": 0.0,
    }
    for pos in active_positions(list(positions)):
        if isinstance(pos, SpotPosition):
            exposure["linear"] += pos.quantity
        elif isinstance(pos, FuturesPosition):
            exposure["linear"] += pos.notional_quantity
        elif isinstance(pos, OptionPosition):
            side = "long" if pos.is_long else "short"
            kind = "call" if pos.is_call else "put"
            exposure[f"{side}_{kind}"] += abs(pos.quantity)
    return exposure


def classify_risk(
    positions: Sequence[Position],
    method: RiskMethod = "slope",
) -> RiskProfile:
    """
    Classify whether profit and/or loss are unbounded.

    method="slope" (default) uses the exact asymptotic slope: positive means
    profit grows without bound as price rises, negative means loss does.
    Prices cannot go below zero, so the low tail is always bounded and this
    method never reports UNBOUNDED_BOTH.

    method="exposure" is the per-leg approximation: any net long linear or
    long call exposure flags upside, any net short linear or short call
    exposure flags downside. A covered call is reported as UNBOUNDED_BOTH
    under this method even though its upside is capped.
    """
    if method == "slope":
        slope = upper_asymptotic_slope(positions)
        if math.isclose(slope, 0.0, abs_tol=SLOPE_TOLERANCE):
            return RiskProfile.BOUNDED
        return RiskProfile.UNBOUNDED_UPSIDE if slope > 0 else RiskProfile.UNBOUNDED_DOWNSIDE

    if method == "exposure":
        exposure = net_exposure(positions)
        upside = exposure["linear"] > 0 or exposure["long_call"] > 0
        downside = exposure["linear"] < 0 or exposure["short_call"] > 0
        if upside and downside:
            return RiskProfile.UNBOUNDED_BOTH
        if upside:
            return RiskProfile.UNBOUNDED_UPSIDE
        if downside:
            return RiskProfile.UNBOUNDED_DOWNSIDE
        return RiskProfile.BOUNDED

    raise ValueError(f"Unknown risk method: {method!r}")


def has_unlimited_profit(positions: Sequence[Position]) -> bool:
    return classify_risk(positions) in (RiskProfile.UNBOUNDED_UPSIDE, RiskProfile.UNBOUNDED_BOTH)


def has_unlimited_loss(positions: Sequence[Position]) -> bool:
    return classify_risk(positions) in (RiskProfile.UNBOUNDED_DOWNSIDE, RiskProfile.UNBOUNDED_BOTH)


def risk_level(profile: RiskProfile) -> RiskLevel:
    """Map a risk profile onto a severity level."""
    if profile in (RiskProfile.UNBOUNDED_DOWNSIDE, RiskProfile.UNBOUNDED_BOTH):
        return RiskLevel.HIGH
    if profile == RiskProfile.UNBOUNDED_UPSIDE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


# ============================================================================
# Portfolio Analysis
# ============================================================================

@dataclass
class PortfolioAnalysis:
    """Complete payoff analysis of a portfolio over one price window."""
    start_price: float
    end_price: float
    step: float

    total_positions: int = 0
    active_positions: int = 0

    curve: List[PayoffPoint] = field(default_factory=list)
    breakevens: List[float] = field(default_factory=list)

    # Window-bound statistics
    max_profit: Optional[float] = None
    max_loss: Optional[float] = None
    profit_probability: Optional[float] = None
    expected_value: Optional[float] = None

    # Independent of the window
    risk_profile: RiskProfile = RiskProfile.BOUNDED
    risk_level: RiskLevel = RiskLevel.LOW

    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary for chart rendering."""
        return {
            "priceRange": {"start": self.start_price, "end": self.end_price, "step": self.step},
            "totalPositions": self.total_positions,
            "activePositions": self.active_positions,
            "payoffCurve": [point.to_dict() for point in self.curve],
            "breakevens": self.breakevens,
            "maxProfit": self.max_profit,
            "maxLoss": self.max_loss,
            "profitProbability": self.profit_probability,
            "expectedValue": self.expected_value,
            "riskProfile": self.risk_profile.value,
            "riskLevel": self.risk_level.value,
            "error": self.error,
        }


def analyze_portfolio(
    positions: Sequence[Position],
    start_price: Optional[float] = None,
    end_price: Optional[float] = None,
    step: Optional[float] = None,
    precision: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> PortfolioAnalysis:
    """
    Analyze a portfolio and return comprehensive metrics.

    Args:
        positions: Portfolio (inactive positions are kept in the counts only)
        start_price: Window start; auto_range() when omitted
        end_price: Window end; auto_range() when omitted
        step: Sampling step; defaults to the window split into
            config.curve_samples intervals
        precision: Breakeven refinement tolerance
        config: Engine configuration

    Returns:
        PortfolioAnalysis. Invalid ranges or inputs are reported in
        analysis.error with an empty curve; nothing partial is returned.
    """
    config = resolve_config(config)
    positions = list(positions)
    active = active_positions(positions)

    if start_price is None or end_price is None:
        auto_start, auto_end = auto_range(positions, config)
        start_price = auto_start if start_price is None else start_price
        end_price = auto_end if end_price is None else end_price

    if step is None:
        span = end_price - start_price
        step = span / config.curve_samples if span > 0 else config.default_step

    result = PortfolioAnalysis(
        start_price=start_price,
        end_price=end_price,
        step=step,
        total_positions=len(positions),
        active_positions=len(active),
    )

    try:
        curve = generate(positions, start_price, end_price, step, config)
    except PayoffError as e:
        logger.warning(f"Portfolio analysis failed: {e}")
        result.error = str(e)
        return result

    result.curve = curve
    if active:
        result.breakevens = find_breakevens_in_curve(curve, positions, precision, config)
    result.max_profit = max_profit(curve)
    result.max_loss = max_loss(curve)
    result.profit_probability = profit_probability(curve)
    result.expected_value = expected_value(curve)
    result.risk_profile = classify_risk(positions)
    result.risk_level = risk_level(result.risk_profile)

    return result


# ============================================================================
# Output Formatting
# ============================================================================

def _fmt_money(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"${value:,.2f}"


def format_analysis_summary(analysis: PortfolioAnalysis) -> str:
    """Format analysis as human-readable summary."""
    lines = []
    lines.append("=== Payoff Analysis ===")
    lines.append(
        f"Range: ${analysis.start_price:.2f} - ${analysis.end_price:.2f} | Step: {analysis.step:.2f}"
    )
    lines.append(f"Positions: {analysis.active_positions} active / {analysis.total_positions} total")
    lines.append("")

    if analysis.error:
        lines.append(f"Error: {analysis.error}")
        return "\n".join(lines)

    if analysis.breakevens:
        lines.append("Breakevens: " + ", ".join(f"${b:,.2f}" for b in analysis.breakevens))
    else:
        lines.append("Breakevens: none in range")

    unlimited_profit = analysis.risk_profile in (RiskProfile.UNBOUNDED_UPSIDE, RiskProfile.UNBOUNDED_BOTH)
    unlimited_loss = analysis.risk_profile in (RiskProfile.UNBOUNDED_DOWNSIDE, RiskProfile.UNBOUNDED_BOTH)

    lines.append(
        f"Max Profit: {_fmt_money(analysis.max_profit)}"
        + (" (unlimited above range)" if unlimited_profit else "")
    )
    lines.append(
        f"Max Loss: {_fmt_money(analysis.max_loss)}"
        + (" (unlimited above range)" if unlimited_loss else "")
    )

    if analysis.profit_probability is not None:
        lines.append(f"Profitable Range Share: {analysis.profit_probability:.1%}")
    lines.append(f"Expected Value: {_fmt_money(analysis.expected_value)}")
    lines.append(f"Risk: {analysis.risk_level.value.upper()} ({analysis.risk_profile.value})")

    return "\n".join(lines)
