"""Pool configuration parsing.

Converts plain mappings (decoded JSON, YAML, test fixtures) into the typed
configuration dataclasses. Wire-level shape is checked by pydantic; domain
rules are checked by the dataclasses themselves.

Example:
    >>> config = parse_config({
    ...     "pool_type": "constant_product",
    ...     "token_a": {"address": "0x" + "11" * 20},
    ...     "token_b": {"address": "0x" + "22" * 20},
    ...     "fee_bps": 30,
    ...     "reserve_a": "1000000",
    ...     "reserve_b": "1000000",
    ... })
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Literal, Union

import structlog
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from hydra_amm.constants import AMOUNT_MAX, BPS_DENOMINATOR, MAX_DECIMALS
from hydra_amm.errors import InvalidConfiguration
from hydra_amm.models.order import OrderSide, RestingOrder
from hydra_amm.models.types import FeeTier, Position, Price, Token, TokenPair

from .models import (
    AmmConfig,
    ClmmConfig,
    ConstantProductConfig,
    DynamicConfig,
    FallbackConfig,
    HybridConfig,
    OrderBookConfig,
    WeightedConfig,
)

logger = structlog.get_logger()


def validate_amount(value: Any) -> int:
    """Validate a token amount given as an int or a decimal integer string.

    Args:
        value: Value to validate

    Returns:
        The amount as an int

    Raises:
        ValueError: If value is not a non-negative integer within 2^128-1
    """
    if isinstance(value, bool):
        raise ValueError("Amount cannot be a boolean")
    if isinstance(value, int):
        int_value = value
    elif isinstance(value, str):
        try:
            int_value = int(value)
        except ValueError as err:
            raise ValueError(f"Amount must be a decimal integer string: '{value}'") from err
    else:
        raise ValueError(f"Amount must be string or int, got {type(value).__name__}")

    if int_value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    if int_value > AMOUNT_MAX:
        raise ValueError(f"Amount overflow: {value} > 2^128-1")
    return int_value


def validate_decimal(value: Any) -> Decimal:
    """Validate an exact decimal given as a string, int or Decimal.

    Floats are rejected since they cannot carry an exact price.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Decimal must be a string or int, got {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation as err:
            raise ValueError(f"Invalid decimal string: '{value}'") from err
    else:
        raise ValueError(f"Decimal must be a string or int, got {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"Decimal must be finite: '{value}'")
    return result


# Token amount as int or decimal string (validated)
AmountField = Annotated[int, BeforeValidator(validate_amount)]

# Exact decimal as string or int (validated)
DecimalField = Annotated[Decimal, BeforeValidator(validate_decimal)]

# Token address (40 hex chars after 0x prefix)
AddressField = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

FeeBps = Annotated[int, Field(ge=0, le=BPS_DENOMINATOR, strict=True)]


class _Schema(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class TokenSchema(_Schema):
    """Token as it appears in a configuration document."""

    address: AddressField
    decimals: int = Field(default=18, ge=0, le=MAX_DECIMALS)

    def to_token(self) -> Token:
        return Token.from_hex(self.address, self.decimals)


class WeightedTokenSchema(TokenSchema):
    """Token with its pool weight in basis points."""

    weight: int = Field(gt=0)


class PositionSchema(_Schema):
    lower_tick: int
    upper_tick: int
    liquidity: AmountField

    def to_position(self) -> Position:
        return Position.new(self.lower_tick, self.upper_tick, self.liquidity)


class OrderSchema(_Schema):
    side: OrderSide
    price: DecimalField
    quantity: AmountField
    sequence: int = Field(ge=0)

    def to_order(self) -> RestingOrder:
        return RestingOrder(self.side, self.price, self.quantity, self.sequence)


class _PairSchema(_Schema):
    token_a: TokenSchema
    token_b: TokenSchema
    fee_bps: FeeBps

    def _pair(self) -> TokenPair:
        return TokenPair(self.token_a.to_token(), self.token_b.to_token())

    def _fee(self) -> FeeTier:
        return FeeTier.from_bps(self.fee_bps)


class ConstantProductSchema(_PairSchema):
    pool_type: Literal["constant_product"]
    reserve_a: AmountField
    reserve_b: AmountField

    def to_config(self) -> ConstantProductConfig:
        return ConstantProductConfig(
            pair=self._pair(),
            fee=self._fee(),
            reserve_base=self.reserve_a,
            reserve_quote=self.reserve_b,
        )


class ClmmSchema(_PairSchema):
    pool_type: Literal["clmm"]
    tick_spacing: int
    current_tick: int
    positions: list[PositionSchema] = Field(default_factory=list)

    def to_config(self) -> ClmmConfig:
        return ClmmConfig(
            pair=self._pair(),
            fee=self._fee(),
            tick_spacing=self.tick_spacing,
            current_tick=self.current_tick,
            positions=tuple(p.to_position() for p in self.positions),
        )


class HybridSchema(_Schema):
    pool_type: Literal["hybrid"]
    tokens: list[TokenSchema]
    reserves: list[AmountField]
    amplification: int
    fee_bps: FeeBps

    def to_config(self) -> HybridConfig:
        return HybridConfig(
            tokens=tuple(t.to_token() for t in self.tokens),
            reserves=tuple(self.reserves),
            amplification=self.amplification,
            fee=FeeTier.from_bps(self.fee_bps),
        )


class WeightedSchema(_Schema):
    pool_type: Literal["weighted"]
    tokens: list[WeightedTokenSchema]
    reserves: list[AmountField]
    fee_bps: FeeBps
    numeric: Literal["fixed", "decimal"] = "fixed"

    def to_config(self) -> WeightedConfig:
        return WeightedConfig(
            tokens=tuple(t.to_token() for t in self.tokens),
            weights=tuple(t.weight for t in self.tokens),
            reserves=tuple(self.reserves),
            fee=FeeTier.from_bps(self.fee_bps),
            numeric=self.numeric,
        )


class DynamicSchema(_PairSchema):
    pool_type: Literal["dynamic"]
    oracle_price: DecimalField
    slippage_coefficient: DecimalField
    reserve_a: AmountField
    reserve_b: AmountField
    numeric: Literal["fixed", "decimal"] = "decimal"

    def to_config(self) -> DynamicConfig:
        return DynamicConfig(
            pair=self._pair(),
            fee=self._fee(),
            oracle_price=Price(self.oracle_price),
            slippage_coefficient=self.slippage_coefficient,
            reserve_base=self.reserve_a,
            reserve_quote=self.reserve_b,
            numeric=self.numeric,
        )


FallbackSchema = Annotated[
    Union[ConstantProductSchema, ClmmSchema, HybridSchema, WeightedSchema, DynamicSchema],
    Field(discriminator="pool_type"),
]


class OrderBookSchema(_PairSchema):
    pool_type: Literal["orderbook"]
    tick_size: DecimalField
    lot_size: AmountField
    fallback: FallbackSchema
    orders: list[OrderSchema] = Field(default_factory=list)

    def to_config(self) -> OrderBookConfig:
        fallback: FallbackConfig = self.fallback.to_config()
        return OrderBookConfig(
            pair=self._pair(),
            fee=self._fee(),
            tick_size=self.tick_size,
            lot_size=self.lot_size,
            fallback=fallback,
            orders=tuple(o.to_order() for o in self.orders),
        )


PoolSchema = Annotated[
    Union[
        ConstantProductSchema,
        ClmmSchema,
        HybridSchema,
        WeightedSchema,
        DynamicSchema,
        OrderBookSchema,
    ],
    Field(discriminator="pool_type"),
]

_POOL_ADAPTER: TypeAdapter[Any] = TypeAdapter(PoolSchema)


def parse_config(data: Mapping[str, Any]) -> AmmConfig:
    """Parse a configuration mapping into a typed pool configuration.

    The `pool_type` key selects the family: constant_product, clmm, hybrid,
    weighted, dynamic or orderbook.

    Args:
        data: Decoded configuration document

    Returns:
        The matching AmmConfig variant, already validated

    Raises:
        InvalidConfiguration: If the document is malformed
        SameToken: If a pair or token list repeats a token
        InvalidPosition: If a CLMM position range is malformed
        TickOutOfRange: If a tick is outside the global range
    """
    try:
        schema = _POOL_ADAPTER.validate_python(data)
    except ValidationError as err:
        logger.debug("config_rejected", errors=err.error_count())
        raise InvalidConfiguration(f"Invalid pool configuration: {err}") from err
    return schema.to_config()


def parse_config_json(raw: str | bytes) -> AmmConfig:
    """Parse a JSON configuration document.

    Raises:
        InvalidConfiguration: If the JSON is malformed or fails validation
    """
    try:
        schema = _POOL_ADAPTER.validate_json(raw)
    except ValidationError as err:
        logger.debug("config_rejected", errors=err.error_count())
        raise InvalidConfiguration(f"Invalid pool configuration: {err}") from err
    return schema.to_config()


__all__ = [
    "AmountField",
    "DecimalField",
    "PoolSchema",
    "parse_config",
    "parse_config_json",
    "validate_amount",
    "validate_decimal",
]
