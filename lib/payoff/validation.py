"""
Position and chart-parameter validation.

Form and import layers hand raw mappings to parse_position() to get engine
Position objects, or to validate_position() to get every field error at
once for display next to the offending input.

    >>> validate_position({"kind": "option", "option_type": "call",
    ...                    "quantity": 0, "strike_price": 100, "premium": 5}).errors
    [FieldError(field='quantity', message='Quantity cannot be zero')]
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Annotated, Any, List, Literal, Mapping, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .curve import count_samples
from .errors import FieldError, InvalidPosition, PayoffError
from .positions import (
    FuturesPosition,
    OptionPosition,
    OptionType,
    Position,
    PositionMixin,
    SpotPosition,
)

# Warning thresholds
LARGE_SPOT_QUANTITY = 10_000
LARGE_OPTION_QUANTITY = 1_000
LARGE_FUTURES_QUANTITY = 100
LARGE_CONTRACT_SIZE = 100_000
HIGH_PREMIUM_RATIO = 0.5
LARGE_NOTIONAL = 1_000_000
MANY_POSITIONS = 10
MANY_SAMPLES = 10_000


# ============================================================================
# Input Schemas (Pydantic)
# ============================================================================

class _PositionInput(BaseModel):
    """Fields shared by every position kind."""
    model_config = ConfigDict(extra="ignore")

    quantity: float = Field(allow_inf_nan=False, description="Signed quantity, negative = short")
    description: str = ""
    active: bool = True

    @field_validator("quantity")
    @classmethod
    def quantity_not_zero(cls, v: float) -> float:
        if v == 0:
            raise ValueError("Quantity cannot be zero")
        return v


class SpotInput(_PositionInput):
    kind: Literal["spot"] = "spot"
    entry_price: float = Field(gt=0, allow_inf_nan=False)

    def to_position(self) -> SpotPosition:
        return SpotPosition(
            quantity=self.quantity,
            entry_price=self.entry_price,
            description=self.description,
            active=self.active,
        )


class OptionInput(_PositionInput):
    kind: Literal["option"] = "option"
    option_type: OptionType
    strike_price: float = Field(gt=0, allow_inf_nan=False)
    premium: float = Field(ge=0, allow_inf_nan=False, description="Per-unit premium, always positive")

    @field_validator("option_type", mode="before")
    @classmethod
    def lowercase_option_type(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    def to_position(self) -> OptionPosition:
        return OptionPosition(
            option_type=self.option_type,
            quantity=self.quantity,
            strike_price=self.strike_price,
            premium=self.premium,
            description=self.description,
            active=self.active,
        )


class FuturesInput(_PositionInput):
    kind: Literal["futures"] = "futures"
    entry_price: float = Field(gt=0, allow_inf_nan=False)
    contract_size: float = Field(default=1.0, gt=0, allow_inf_nan=False)

    def to_position(self) -> FuturesPosition:
        return FuturesPosition(
            quantity=self.quantity,
            entry_price=self.entry_price,
            contract_size=self.contract_size,
            description=self.description,
            active=self.active,
        )


PositionInput = Annotated[Union[SpotInput, OptionInput, FuturesInput], Field(discriminator="kind")]

_position_adapter = TypeAdapter(PositionInput)

_KIND_TAGS = ("spot", "option", "futures")


def _field_errors(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic ValidationError into (field, message) pairs."""
    errors = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        # Discriminated unions prefix the location with the tag
        if loc and loc[0] in _KIND_TAGS:
            loc = loc[1:]
        name = ".".join(str(part) for part in loc) or "kind"
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(name, message))
    return errors


def _as_mapping(position: Union[Position, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(position, PositionMixin):
        return position.to_dict()
    return position


# ============================================================================
# Parsing
# ============================================================================

def parse_position(data: Union[Position, Mapping[str, Any]]) -> Position:
    """
    Build an engine Position from raw input.

    Raises:
        InvalidPosition: with every field error found
    """
    if isinstance(data, PositionMixin):
        return data

    try:
        model = _position_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidPosition(_field_errors(e)) from e

    return model.to_position()


def parse_positions(items: Sequence[Union[Position, Mapping[str, Any]]]) -> List[Position]:
    """
    Build a portfolio from raw input, preserving order.

    Raises:
        InvalidPosition: field names are prefixed with the item index
    """
    positions = []
    errors: List[FieldError] = []
    for i, item in enumerate(items):
        try:
            positions.append(parse_position(item))
        except InvalidPosition as e:
            errors.extend(FieldError(f"{i}.{err.field}", err.message) for err in e.errors)

    if errors:
        raise InvalidPosition(errors)
    return positions


# ============================================================================
# Validation Results
# ============================================================================

@dataclass
class ValidationResult:
    """Outcome of validating a position, portfolio or chart parameters."""
    errors: List[FieldError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.append(FieldError(field_name, message))

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)


def _position_warnings(model: Union[SpotInput, OptionInput, FuturesInput]) -> List[str]:
    warnings = []
    if isinstance(model, SpotInput):
        if abs(model.quantity) > LARGE_SPOT_QUANTITY:
            warnings.append("Large position size detected")

    elif isinstance(model, OptionInput):
        if model.premium == 0:
            warnings.append("Zero premium option - verify this is correct")
        if abs(model.quantity) > LARGE_OPTION_QUANTITY:
            warnings.append("Large option position detected")
        if model.premium > model.strike_price * HIGH_PREMIUM_RATIO:
            warnings.append("Premium seems unusually high relative to strike price")

    elif isinstance(model, FuturesInput):
        if abs(model.quantity) > LARGE_FUTURES_QUANTITY:
            warnings.append("Large futures position detected")
        if model.contract_size > LARGE_CONTRACT_SIZE:
            warnings.append("Very large contract size detected")

    return warnings


def validate_position(position: Union[Position, Mapping[str, Any]]) -> ValidationResult:
    """
    Validate a single position (engine object or raw mapping).

    Returns:
        ValidationResult with every field error and any sanity warnings
    """
    result = ValidationResult()
    try:
        model = _position_adapter.validate_python(_as_mapping(position))
    except ValidationError as e:
        result.errors.extend(_field_errors(e))
        return result

    for warning in _position_warnings(model):
        result.add_warning(warning)
    return result


def _notional(position: Position) -> float:
    if isinstance(position, OptionPosition):
        return abs(position.quantity) * position.strike_price
    if isinstance(position, FuturesPosition):
        return abs(position.quantity) * position.entry_price * position.contract_size
    return abs(position.quantity) * position.entry_price


def validate_portfolio(positions: Sequence[Union[Position, Mapping[str, Any]]]) -> ValidationResult:
    """Validate every position plus portfolio-level sanity checks."""
    result = ValidationResult()

    if not positions:
        result.add_warning("Portfolio is empty")
        return result

    parsed: List[Position] = []
    for i, position in enumerate(positions):
        pos_result = validate_position(position)

        for err in pos_result.errors:
            result.add_error(f"{i}.{err.field}", f"Position {i + 1}: {err.message}")

        for warning in pos_result.warnings:
            result.add_warning(f"Position {i + 1}: {warning}")

        if pos_result.is_valid:
            parsed.append(parse_position(position))

    total_notional = math.fsum(_notional(p) for p in parsed)
    if total_notional > LARGE_NOTIONAL:
        result.add_warning("Portfolio has very large notional exposure")

    if len(positions) > MANY_POSITIONS:
        result.add_warning("Complex portfolio with many positions - consider simplification")

    return result


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_chart_parameters(start_price: float, end_price: float, step: float) -> ValidationResult:
    """
    Validate user-entered range controls before generating a curve.

    start_price == end_price is accepted (single-sample curve).
    """
    result = ValidationResult()

    for name, value in (("start_price", start_price), ("end_price", end_price)):
        if not _is_number(value):
            result.add_error(name, f"{name} must be a number")
        elif not math.isfinite(value):
            result.add_error(name, f"{name} must be a finite number")
        elif value < 0:
            result.add_error(name, f"{name} cannot be negative")

    if not _is_number(step):
        result.add_error("step", "Step size must be a number")
    elif not math.isfinite(step) or step <= 0:
        result.add_error("step", "Step size must be positive")

    if result.errors:
        return result

    if start_price > end_price:
        result.add_error("end_price", "End price must not be lower than start price")
        return result

    span = end_price - start_price
    if span > 0 and step > span:
        result.add_error("step", "Step size is too large for the price range")
        return result

    try:
        samples = count_samples(start_price, end_price, step)
    except PayoffError as e:
        result.add_error("step", str(e))
        return result

    if samples > MANY_SAMPLES:
        result.add_warning(
            f"Large number of data points ({samples:,.0f}). "
            f"Consider increasing step size for better performance."
        )

    return result
