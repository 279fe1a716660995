"""
Pytest configuration for payoff engine tests.

Sets up paths for imports and provides the small portfolios reused across
test modules.
"""

import sys
import os

import pytest

# Add project root to path for imports
# Go up from tests/ -> payoff/ -> lib/ -> project root
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from lib.payoff.positions import FuturesPosition, OptionPosition, OptionType, SpotPosition  # noqa: E402


@pytest.fixture
def long_call():
    """Long 1 call, strike 100, premium 5."""
    return OptionPosition(OptionType.CALL, quantity=1, strike_price=100, premium=5)


@pytest.fixture
def short_call():
    """Short 1 call, strike 100, premium 5."""
    return OptionPosition(OptionType.CALL, quantity=-1, strike_price=100, premium=5)


@pytest.fixture
def straddle():
    """Long call + long put at strike 100, premium 5 each."""
    return [
        OptionPosition(OptionType.CALL, quantity=1, strike_price=100, premium=5),
        OptionPosition(OptionType.PUT, quantity=1, strike_price=100, premium=5),
    ]


@pytest.fixture
def covered_call():
    """Long 100 shares @ 50 + short 100 calls strike 55 premium 2."""
    return [
        SpotPosition(quantity=100, entry_price=50),
        OptionPosition(OptionType.CALL, quantity=-100, strike_price=55, premium=2),
    ]


@pytest.fixture
def short_futures():
    """Short 2 futures @ 4000, contract size 50."""
    return FuturesPosition(quantity=-2, entry_price=4000, contract_size=50)
