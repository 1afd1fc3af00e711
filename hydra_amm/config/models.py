"""Declarative pool configurations.

One frozen dataclass per pool family. Structural checks run on
construction; bound checks that depend on EngineSettings run in
validate(), which every pool's from_config calls before building state.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, TypeAlias

from hydra_amm.constants import AMOUNT_MAX, BPS_DENOMINATOR, MAX_TICK_SPACING, WEIGHT_TOTAL
from hydra_amm.errors import InvalidConfiguration, InvalidTick, SameToken
from hydra_amm.math.numeric import BackendName
from hydra_amm.models.order import RestingOrder
from hydra_amm.models.types import FeeTier, Position, Price, Tick, Token, TokenPair
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings


def _check_reserve(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfiguration(f"{name} must be an int, got {value!r}")
    if value <= 0:
        raise InvalidConfiguration(f"{name} must be positive, got {value}")
    if value > AMOUNT_MAX:
        raise InvalidConfiguration(f"{name} exceeds 2^128-1")


def _check_tokens(tokens: tuple[Token, ...], reserves: tuple[int, ...]) -> None:
    if len(tokens) < 2:
        raise InvalidConfiguration(f"Pool needs at least 2 tokens, got {len(tokens)}")
    if len(set(tokens)) != len(tokens):
        raise SameToken("Pool tokens must be distinct")
    if len(reserves) != len(tokens):
        raise InvalidConfiguration(
            f"Expected {len(tokens)} reserves, got {len(reserves)}"
        )
    for i, reserve in enumerate(reserves):
        _check_reserve(f"reserve[{i}]", reserve)


@dataclass(frozen=True)
class ConstantProductConfig:
    """x * y = k pool over a token pair."""

    pair: TokenPair
    fee: FeeTier
    reserve_base: int
    reserve_quote: int

    pool_type: ClassVar[str] = "constant_product"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        _check_reserve("reserve_base", self.reserve_base)
        _check_reserve("reserve_quote", self.reserve_quote)
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Constant product fee must be below 100%")

    @property
    def tokens(self) -> tuple[Token, ...]:
        return (self.pair.base, self.pair.quote)


@dataclass(frozen=True)
class ClmmConfig:
    """Concentrated liquidity pool; base is token0 and quote is token1."""

    pair: TokenPair
    fee: FeeTier
    tick_spacing: int
    current_tick: int
    positions: tuple[Position, ...] = ()

    pool_type: ClassVar[str] = "clmm"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        if not 0 < self.tick_spacing <= MAX_TICK_SPACING:
            raise InvalidConfiguration(
                f"tick_spacing must be in [1, {MAX_TICK_SPACING}], got {self.tick_spacing}"
            )
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Concentrated liquidity fee must be below 100%")
        tick = Tick(self.current_tick)
        if not tick.is_aligned(self.tick_spacing):
            raise InvalidTick(
                f"current_tick {self.current_tick} not aligned to spacing {self.tick_spacing}"
            )
        for position in self.positions:
            for bound in (position.lower, position.upper):
                if not bound.is_aligned(self.tick_spacing):
                    raise InvalidTick(
                        f"Position tick {bound.value} not aligned to spacing {self.tick_spacing}"
                    )

    @property
    def tokens(self) -> tuple[Token, ...]:
        return (self.pair.base, self.pair.quote)


@dataclass(frozen=True)
class HybridConfig:
    """Amplified stableswap pool over two or more tokens."""

    tokens: tuple[Token, ...]
    reserves: tuple[int, ...]
    amplification: int
    fee: FeeTier

    pool_type: ClassVar[str] = "hybrid"

    def __post_init__(self) -> None:
        _check_tokens(self.tokens, self.reserves)
        if self.amplification <= 0:
            raise InvalidConfiguration(f"amplification must be positive, got {self.amplification}")
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Hybrid pool fee must be below 100%")

    def validate(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        _check_tokens(self.tokens, self.reserves)
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Hybrid pool fee must be below 100%")
        if not settings.min_amplification <= self.amplification <= settings.max_amplification:
            raise InvalidConfiguration(
                f"amplification must be in [{settings.min_amplification}, "
                f"{settings.max_amplification}], got {self.amplification}"
            )


@dataclass(frozen=True)
class WeightedConfig:
    """Weighted geometric-mean pool; weights are basis points summing to WEIGHT_TOTAL."""

    tokens: tuple[Token, ...]
    weights: tuple[int, ...]
    reserves: tuple[int, ...]
    fee: FeeTier
    numeric: BackendName = "fixed"

    pool_type: ClassVar[str] = "weighted"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        _check_tokens(self.tokens, self.reserves)
        if len(self.weights) != len(self.tokens):
            raise InvalidConfiguration(
                f"Expected {len(self.tokens)} weights, got {len(self.weights)}"
            )
        if any(w <= 0 for w in self.weights):
            raise InvalidConfiguration("Weights must be positive")
        if sum(self.weights) != WEIGHT_TOTAL:
            raise InvalidConfiguration(
                f"Weights must sum to {WEIGHT_TOTAL}, got {sum(self.weights)}"
            )
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Weighted pool fee must be below 100%")
        if self.numeric not in ("fixed", "decimal"):
            raise InvalidConfiguration(f"Unknown numeric backend: {self.numeric}")


@dataclass(frozen=True)
class DynamicConfig:
    """Proactive market maker priced around an oracle price.

    Attributes:
        oracle_price: Reference price in quote per base
        slippage_coefficient: k; 0 prices flat at the oracle, 1 behaves like x*y=k
    """

    pair: TokenPair
    fee: FeeTier
    oracle_price: Price
    slippage_coefficient: Decimal
    reserve_base: int
    reserve_quote: int
    numeric: BackendName = "decimal"

    pool_type: ClassVar[str] = "dynamic"

    def __post_init__(self) -> None:
        _check_reserve("reserve_base", self.reserve_base)
        _check_reserve("reserve_quote", self.reserve_quote)
        if not isinstance(self.slippage_coefficient, Decimal):
            raise InvalidConfiguration("slippage_coefficient must be a Decimal")

    def validate(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        _check_reserve("reserve_base", self.reserve_base)
        _check_reserve("reserve_quote", self.reserve_quote)
        k = self.slippage_coefficient
        if not settings.min_slippage_coefficient <= k <= settings.max_slippage_coefficient:
            raise InvalidConfiguration(
                f"slippage_coefficient must be in [{settings.min_slippage_coefficient}, "
                f"{settings.max_slippage_coefficient}], got {k}"
            )
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Dynamic pool fee must be below 100%")
        if self.numeric not in ("fixed", "decimal"):
            raise InvalidConfiguration(f"Unknown numeric backend: {self.numeric}")

    @property
    def tokens(self) -> tuple[Token, ...]:
        return (self.pair.base, self.pair.quote)


FallbackConfig: TypeAlias = (
    ConstantProductConfig | ClmmConfig | HybridConfig | WeightedConfig | DynamicConfig
)


@dataclass(frozen=True)
class OrderBookConfig:
    """Resting limit orders backed by a fallback AMM for unfilled remainders.

    Attributes:
        tick_size: Price granularity; order prices must be multiples of it
        lot_size: Quantity granularity in base units
        orders: Initial resting orders
        fallback: Configuration of the embedded AMM (any other family)
    """

    pair: TokenPair
    fee: FeeTier
    tick_size: Decimal
    lot_size: int
    fallback: FallbackConfig
    orders: tuple[RestingOrder, ...] = ()

    pool_type: ClassVar[str] = "orderbook"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        if not isinstance(self.tick_size, Decimal) or self.tick_size <= 0:
            raise InvalidConfiguration(f"tick_size must be positive, got {self.tick_size}")
        if self.lot_size <= 0:
            raise InvalidConfiguration(f"lot_size must be positive, got {self.lot_size}")
        if self.fee.bps.value >= BPS_DENOMINATOR:
            raise InvalidConfiguration("Order book fee must be below 100%")
        if isinstance(self.fallback, OrderBookConfig):
            raise InvalidConfiguration("Order book fallback cannot be another order book")
        fallback_tokens = set(self.fallback.tokens)
        if self.pair.base not in fallback_tokens or self.pair.quote not in fallback_tokens:
            raise InvalidConfiguration("Fallback pool must trade the order book's pair")
        sequences = set()
        for order in self.orders:
            if order.price % self.tick_size != 0:
                raise InvalidConfiguration(
                    f"Order price {order.price} is not a multiple of tick_size {self.tick_size}"
                )
            if order.quantity % self.lot_size != 0:
                raise InvalidConfiguration(
                    f"Order quantity {order.quantity} is not a multiple of lot_size {self.lot_size}"
                )
            if order.sequence in sequences:
                raise InvalidConfiguration(f"Duplicate order sequence {order.sequence}")
            sequences.add(order.sequence)

    @property
    def tokens(self) -> tuple[Token, ...]:
        return (self.pair.base, self.pair.quote)


# Union type for all pool configurations
AmmConfig: TypeAlias = (
    ConstantProductConfig
    | ClmmConfig
    | HybridConfig
    | WeightedConfig
    | DynamicConfig
    | OrderBookConfig
)

__all__ = [
    "AmmConfig",
    "ClmmConfig",
    "ConstantProductConfig",
    "DynamicConfig",
    "FallbackConfig",
    "HybridConfig",
    "OrderBookConfig",
    "WeightedConfig",
]
