"""
Payoff Calculation Engine

Turns a set of spot, option and futures positions into a profit/loss curve
over the underlying price, with breakevens, window extremes, an auto chart
range and unbounded-risk classification. Pure and synchronous: no I/O, no
shared state between calls.

Example usage:
    from lib.payoff import OptionPosition, OptionType, generate, find_breakevens

    straddle = [
        OptionPosition(OptionType.CALL, quantity=1, strike_price=100, premium=5),
        OptionPosition(OptionType.PUT, quantity=1, strike_price=100, premium=5),
    ]
    curve = generate(straddle, 80, 120, 1)
    print(find_breakevens(straddle, 80, 120))   # [90.0, 110.0]
"""

from .analyzer import (
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
    profit_probability,
    risk_level,
)
from .breakeven import find_breakevens, find_breakevens_in_curve
from .config import EngineConfig, RangePreset, load_config, setup_logging
from .curve import PayoffPoint, generate
from .errors import (
    FieldError,
    InvalidPosition,
    InvalidPrice,
    InvalidQuantity,
    InvalidRange,
    PayoffError,
    SampleLimitExceeded,
)
from .evaluator import evaluate, evaluate_portfolio
from .positions import (
    FuturesPosition,
    OptionPosition,
    OptionType,
    Position,
    PositionType,
    SpotPosition,
)
from .validation import (
    ValidationResult,
    parse_position,
    parse_positions,
    validate_chart_parameters,
    validate_portfolio,
    validate_position,
)

__all__ = [
    # Positions
    'Position',
    'PositionType',
    'OptionType',
    'SpotPosition',
    'OptionPosition',
    'FuturesPosition',
    # Evaluation
    'evaluate',
    'evaluate_portfolio',
    'PayoffPoint',
    'generate',
    'find_breakevens',
    'find_breakevens_in_curve',
    # Analysis
    'auto_range',
    'max_profit',
    'max_loss',
    'profit_probability',
    'expected_value',
    'classify_risk',
    'has_unlimited_profit',
    'has_unlimited_loss',
    'risk_level',
    'RiskProfile',
    'RiskLevel',
    'PortfolioAnalysis',
    'analyze_portfolio',
    'format_analysis_summary',
    # Validation
    'ValidationResult',
    'validate_position',
    'validate_portfolio',
    'validate_chart_parameters',
    'parse_position',
    'parse_positions',
    # Config
    'EngineConfig',
    'RangePreset',
    'load_config',
    'setup_logging',
    # Errors
    'PayoffError',
    'InvalidQuantity',
    'InvalidPrice',
    'InvalidRange',
    'SampleLimitExceeded',
    'InvalidPosition',
    'FieldError',
]
