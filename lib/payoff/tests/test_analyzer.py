"""
Tests for Range & Risk Analyzer

Coverage targets:
- auto_range: padding, single price, default range, floor at zero
- max_profit / max_loss / profit_probability / expected_value
- classify_risk: slope and exposure methods
- risk_level / has_unlimited_profit / has_unlimited_loss
- analyze_portfolio / PortfolioAnalysis.to_dict / format_analysis_summary
"""

import json

import pytest

from lib.payoff.analyzer import (
    PortfolioAnalysis,
    RiskLevel,
    RiskProfile,
    analyze_portfolio,
    auto_range,
    classify_risk,
    expected_value,
    format_analysis_summary,
    has_unlimited_loss,
    has_unlimited_profit,
    max_loss,
    max_profit,
    net_exposure,
    profit_probability,
    risk_level,
)
from lib.payoff.config import EngineConfig, RangePreset
from lib.payoff.curve import PayoffPoint, generate
from lib.payoff.positions import FuturesPosition, OptionPosition, OptionType, SpotPosition


class TestAutoRange:
    """Tests for auto_range function."""

    def test_single_strike(self, long_call):
        low, high = auto_range([long_call])
        assert low == pytest.approx(70.0)
        assert high == pytest.approx(130.0)

    def test_symmetric_around_single_price(self, long_call):
        low, high = auto_range([long_call])
        assert (low + high) / 2 == pytest.approx(100.0)

    def test_multiple_prices_pad_by_span_or_midpoint(self):
        positions = [
            OptionPosition(OptionType.PUT, quantity=1, strike_price=90, premium=2),
            OptionPosition(OptionType.CALL, quantity=1, strike_price=110, premium=2),
        ]
        # span 20, midpoint 100 -> padding 30
        assert auto_range(positions) == (pytest.approx(60.0), pytest.approx(140.0))

    def test_wide_span(self):
        positions = [
            SpotPosition(quantity=1, entry_price=10),
            SpotPosition(quantity=1, entry_price=200),
        ]
        # span 190 > midpoint 105 -> padding 57, lower bound floored at 0
        low, high = auto_range(positions)
        assert low == 0.0
        assert high == pytest.approx(257.0)

    def test_mixed_kinds(self, covered_call, short_futures):
        low, high = auto_range(covered_call + [short_futures])
        assert low == 0.0
        assert high > 4000.0

    def test_default_range_without_active_positions(self, long_call):
        assert auto_range([]) == (0.0, 300.0)
        long_call.set_active(False)
        assert auto_range([long_call]) == (0.0, 300.0)

    def test_inactive_prices_ignored(self, long_call):
        far = SpotPosition(quantity=1, entry_price=1000, active=False)
        assert auto_range([long_call, far]) == auto_range([long_call])

    def test_preset_padding(self, long_call):
        wide = EngineConfig.from_preset(RangePreset.WIDE)
        tight = EngineConfig.from_preset(RangePreset.TIGHT)
        assert auto_range([long_call], wide) == (pytest.approx(40.0), pytest.approx(160.0))
        assert auto_range([long_call], tight) == (pytest.approx(90.0), pytest.approx(110.0))

    def test_range_contains_breakevens(self, straddle):
        low, high = auto_range(straddle)
        assert low < 90.0 and high > 110.0


class TestCurveStatistics:
    """Tests for max_profit, max_loss and the uniform-price statistics."""

    def test_short_call_window(self, short_call):
        curve = generate([short_call], 80, 120, 1)
        assert max_profit(curve) == pytest.approx(5.0)
        assert max_loss(curve) == pytest.approx(-15.0)

    def test_zero_active_positions(self, short_call):
        short_call.toggle_active()
        curve = generate([short_call], 80, 120, 1)
        assert max_profit(curve) == 0.0
        assert max_loss(curve) == 0.0

    def test_empty_curve(self):
        assert max_profit([]) is None
        assert max_loss([]) is None
        assert profit_probability([]) is None
        assert expected_value([]) is None

    def test_profit_probability(self):
        curve = [PayoffPoint(0.0, -1.0), PayoffPoint(1.0, 0.0), PayoffPoint(2.0, 3.0), PayoffPoint(3.0, 5.0)]
        assert profit_probability(curve) == pytest.approx(0.5)

    def test_expected_value(self):
        curve = [PayoffPoint(0.0, -1.0), PayoffPoint(1.0, 0.0), PayoffPoint(2.0, 3.0), PayoffPoint(3.0, 6.0)]
        assert expected_value(curve) == pytest.approx(2.0)


class TestClassifyRisk:
    """Tests for classify_risk function."""

    def test_long_call_unbounded_upside(self, long_call):
        assert classify_risk([long_call]) is RiskProfile.UNBOUNDED_UPSIDE

    def test_short_call_unbounded_downside(self, short_call):
        assert classify_risk([short_call]) is RiskProfile.UNBOUNDED_DOWNSIDE

    def test_puts_are_bounded(self):
        long_put = OptionPosition(OptionType.PUT, quantity=1, strike_price=100, premium=5)
        short_put = OptionPosition(OptionType.PUT, quantity=-1, strike_price=100, premium=5)
        assert classify_risk([long_put]) is RiskProfile.BOUNDED
        assert classify_risk([short_put]) is RiskProfile.BOUNDED

    def test_covered_call_bounded(self, covered_call):
        """Long stock slope cancels the short call slope."""
        assert classify_risk(covered_call) is RiskProfile.BOUNDED

    def test_vertical_spread_bounded(self):
        spread = [
            OptionPosition(OptionType.CALL, quantity=1, strike_price=100, premium=5),
            OptionPosition(OptionType.CALL, quantity=-1, strike_price=110, premium=2),
        ]
        assert classify_risk(spread) is RiskProfile.BOUNDED

    def test_short_futures(self, short_futures):
        assert classify_risk([short_futures]) is RiskProfile.UNBOUNDED_DOWNSIDE

    def test_empty_and_inactive(self, long_call):
        assert classify_risk([]) is RiskProfile.BOUNDED
        long_call.set_active(False)
        assert classify_risk([long_call]) is RiskProfile.BOUNDED

    def test_fractional_cancellation(self):
        positions = [
            SpotPosition(quantity=0.1, entry_price=10),
            SpotPosition(quantity=0.2, entry_price=10),
            SpotPosition(quantity=-0.3, entry_price=10),
        ]
        assert classify_risk(positions) is RiskProfile.BOUNDED

    def test_exposure_method_covered_call(self, covered_call):
        assert classify_risk(covered_call, method="exposure") is RiskProfile.UNBOUNDED_BOTH

    def test_exposure_method_single_legs(self, long_call, short_futures):
        assert classify_risk([long_call], method="exposure") is RiskProfile.UNBOUNDED_UPSIDE
        assert classify_risk([short_futures], method="exposure") is RiskProfile.UNBOUNDED_DOWNSIDE
        assert classify_risk([], method="exposure") is RiskProfile.BOUNDED

    def test_unknown_method(self, long_call):
        with pytest.raises(ValueError):
            classify_risk([long_call], method="delta")

    def test_net_exposure(self, covered_call, short_futures):
        exposure = net_exposure(covered_call + [short_futures])
        assert exposure["linear"] == pytest.approx(100 - 100)
        assert exposure["short_call"] == pytest.approx(100.0)
        assert exposure["long_call"] == 0.0


class TestRiskLevel:
    """Tests for risk_level and the unlimited helpers."""

    def test_levels(self):
        assert risk_level(RiskProfile.BOUNDED) is RiskLevel.LOW
        assert risk_level(RiskProfile.UNBOUNDED_UPSIDE) is RiskLevel.MEDIUM
        assert risk_level(RiskProfile.UNBOUNDED_DOWNSIDE) is RiskLevel.HIGH
        assert risk_level(RiskProfile.UNBOUNDED_BOTH) is RiskLevel.HIGH

    def test_unlimited_helpers(self, long_call, short_call):
        assert has_unlimited_profit([long_call])
        assert not has_unlimited_loss([long_call])
        assert has_unlimited_loss([short_call])
        assert not has_unlimited_profit([short_call])


class TestAnalyzePortfolio:
    """Tests for analyze_portfolio function."""

    def test_straddle_auto_range(self, straddle):
        analysis = analyze_portfolio(straddle)
        assert analysis.ok
        assert (analysis.start_price, analysis.end_price) == (pytest.approx(70.0), pytest.approx(130.0))
        assert analysis.breakevens == [pytest.approx(90.0), pytest.approx(110.0)]
        assert analysis.max_loss == pytest.approx(-10.0)
        assert analysis.max_profit == pytest.approx(20.0)
        assert analysis.risk_profile is RiskProfile.UNBOUNDED_UPSIDE
        assert analysis.risk_level is RiskLevel.MEDIUM

    def test_explicit_window(self, short_call):
        analysis = analyze_portfolio([short_call], 80, 120, 1)
        assert len(analysis.curve) == 41
        assert analysis.max_profit == pytest.approx(5.0)
        assert analysis.max_loss == pytest.approx(-15.0)
        assert analysis.breakevens == [pytest.approx(105.0)]
        assert analysis.risk_level is RiskLevel.HIGH

    def test_partial_window_uses_auto_range(self, long_call):
        analysis = analyze_portfolio([long_call], start_price=95)
        assert analysis.start_price == 95
        assert analysis.end_price == pytest.approx(130.0)

    def test_default_step_scales_with_window(self):
        """High-priced underlyings stay under the sample cap with default arguments."""
        analysis = analyze_portfolio([SpotPosition(quantity=1, entry_price=200_000)])
        assert analysis.ok
        assert (analysis.start_price, analysis.end_price) == (pytest.approx(140_000), pytest.approx(260_000))
        assert analysis.step == pytest.approx(120.0)
        assert len(analysis.curve) == 1001
        assert analysis.breakevens == [pytest.approx(200_000)]

    def test_default_step_for_single_price_window(self, long_call):
        analysis = analyze_portfolio([long_call], 100, 100)
        assert analysis.ok
        assert analysis.step == 1.0
        assert len(analysis.curve) == 1

    def test_counts(self, straddle):
        straddle.append(SpotPosition(quantity=1, entry_price=100, active=False))
        analysis = analyze_portfolio(straddle, 80, 120, 5)
        assert analysis.total_positions == 3
        assert analysis.active_positions == 2

    def test_zero_active_positions(self, long_call):
        long_call.set_active(False)
        analysis = analyze_portfolio([long_call], 80, 120, 10)
        assert analysis.ok
        assert [p.payoff for p in analysis.curve] == [0.0] * 5
        assert analysis.breakevens == []
        assert analysis.max_profit == 0.0
        assert analysis.max_loss == 0.0
        assert analysis.risk_profile is RiskProfile.BOUNDED

    def test_error_reported_not_raised(self, long_call):
        analysis = analyze_portfolio([long_call], 120, 80, 1)
        assert not analysis.ok
        assert "must not exceed" in analysis.error
        assert analysis.curve == []
        assert analysis.max_profit is None

    def test_sample_limit_reported(self, long_call):
        analysis = analyze_portfolio([long_call], 0, 1000, 1e-6)
        assert not analysis.ok
        assert "samples" in analysis.error

    def test_to_dict_is_json_ready(self, long_call):
        analysis = analyze_portfolio([long_call], 90, 110, 10)
        data = analysis.to_dict()
        json.dumps(data)
        assert data["priceRange"] == {"start": 90, "end": 110, "step": 10}
        assert data["payoffCurve"] == [
            {"price": 90.0, "payoff": -5.0},
            {"price": 100.0, "payoff": -5.0},
            {"price": 110.0, "payoff": 5.0},
        ]
        assert data["riskProfile"] == "unbounded_upside"
        assert data["riskLevel"] == "medium"
        assert data["error"] is None


class TestFormatSummary:
    """Tests for format_analysis_summary."""

    def test_summary_lines(self, short_call):
        text = format_analysis_summary(analyze_portfolio([short_call], 80, 120, 1))
        assert "=== Payoff Analysis ===" in text
        assert "Breakevens: $105.00" in text
        assert "Max Profit: $5.00" in text
        assert "Max Loss: $-15.00 (unlimited above range)" in text
        assert "Risk: HIGH (unbounded_downside)" in text

    def test_no_breakevens(self, long_call):
        text = format_analysis_summary(analyze_portfolio([long_call], 80, 100, 5))
        assert "Breakevens: none in range" in text

    def test_error_summary(self):
        analysis = PortfolioAnalysis(start_price=10, end_price=5, step=1, error="bad range")
        text = format_analysis_summary(analysis)
        assert text.endswith("Error: bad range")
