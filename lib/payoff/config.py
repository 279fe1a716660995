"""
Payoff Engine Configuration

Numeric constants for range heuristics, sampling limits and breakeven
refinement. Defaults work for typical equity/futures price levels; a YAML
file can override them.

Usage:
    from lib.payoff.config import EngineConfig, RangePreset, load_config

    config = EngineConfig.from_preset(RangePreset.WIDE)
    config = load_config("payoff.yaml")
"""

import logging
import os
import sys
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PAYOFF_ENGINE_CONFIG"


# ============================================================================
# Presets
# ============================================================================

class RangePreset(Enum):
    """Preset padding levels for the auto-computed chart range."""
    NORMAL = "normal"  # 30% padding
    WIDE = "wide"      # 60% padding, for far OTM wings
    TIGHT = "tight"    # 10% padding, for narrow spreads


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the payoff engine.

    Attributes:
        auto_range_padding: Fraction of max(span, midpoint) added to each end of the auto range
        default_range: (min, max) range used when there are no active positions
        max_samples: Upper bound on the number of points in one curve
        default_step: Step used by analyze_portfolio when the window is a single price
        curve_samples: Intervals analyze_portfolio splits the window into when no step is given
        breakeven_precision: |payoff| tolerance for breakeven refinement
        breakeven_samples: Scan resolution (samples per range) when find_breakevens gets no step
        max_refine_iterations: Bisection iterations per bracketed breakeven
    """
    auto_range_padding: float = 0.30
    default_range: Tuple[float, float] = (0.0, 300.0)
    max_samples: int = 100_000
    default_step: float = 1.0
    curve_samples: int = 1_000
    breakeven_precision: float = 1e-6
    breakeven_samples: int = 1_000
    max_refine_iterations: int = 100

    @classmethod
    def from_preset(cls, preset: RangePreset) -> "EngineConfig":
        """Create config from a preset."""
        if preset == RangePreset.WIDE:
            return cls(auto_range_padding=0.60)

        elif preset == RangePreset.TIGHT:
            return cls(auto_range_padding=0.10)

        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        base = cls()
        values = {}
        for key, value in data.items():
            if key == "preset":
                base = cls.from_preset(RangePreset(value))
            elif key in known:
                values[key] = value
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

        if "default_range" in values:
            low, high = values["default_range"]
            values["default_range"] = (float(low), float(high))

        return replace(base, **values)


DEFAULT_CONFIG = EngineConfig()


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Priority:
    1. Explicit config_path argument
    2. PAYOFF_ENGINE_CONFIG environment variable
    3. Default values
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)

    if not config_path:
        return DEFAULT_CONFIG

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file {config_path} not found, using defaults")
        return DEFAULT_CONFIG

    logger.info(f"Loading config from {config_path}")
    with open(path) as f:
        file_config = yaml.safe_load(f) or {}

    # Allow the settings to live under a top-level "payoff" key
    if "payoff" in file_config and isinstance(file_config["payoff"], dict):
        file_config = file_config["payoff"]

    return EngineConfig.from_dict(file_config)


def resolve_config(config: Optional[EngineConfig]) -> EngineConfig:
    """Return the given config or the defaults."""
    return config if config is not None else DEFAULT_CONFIG


def setup_logging(level: int = logging.INFO) -> None:
    """Attach a stderr handler with the given level to the payoff package logger."""
    package_logger = logging.getLogger(__name__.rsplit(".", 1)[0])
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
