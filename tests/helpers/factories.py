"""Factory functions for creating test tokens and pool configurations.

Usage:
    from tests.helpers import make_token, cp_config
    # or
    from tests.helpers.factories import make_token, cp_config
"""

from decimal import Decimal

from hydra_amm.config import (
    ClmmConfig,
    ConstantProductConfig,
    DynamicConfig,
    FallbackConfig,
    HybridConfig,
    OrderBookConfig,
    WeightedConfig,
)
from hydra_amm.models import FeeTier, OrderSide, Position, Price, RestingOrder, Token, TokenPair
from tests.helpers.constants import DAI, TOKEN_DECIMALS, USDC, USDT, WETH


def make_token(address: str = WETH) -> Token:
    """Create a Token with the decimals known for its address.

    Args:
        address: Hex token address (default: WETH)

    Returns:
        Token instance
    """
    return Token.from_hex(address, TOKEN_DECIMALS.get(address, 18))


def make_pair(base: str = WETH, quote: str = USDC) -> TokenPair:
    """Create a (base, quote) TokenPair from two addresses."""
    return TokenPair(make_token(base), make_token(quote))


def cp_config(
    reserve_base: int = 1_000_000,
    reserve_quote: int = 1_000_000,
    fee_bps: int = 30,
    base: str = WETH,
    quote: str = USDC,
) -> ConstantProductConfig:
    """Create a constant product config with test defaults."""
    return ConstantProductConfig(
        pair=make_pair(base, quote),
        fee=FeeTier.from_bps(fee_bps),
        reserve_base=reserve_base,
        reserve_quote=reserve_quote,
    )


def clmm_config(
    positions: tuple[tuple[int, int, int], ...] = ((-100, 100, 1_000_000),),
    current_tick: int = 0,
    tick_spacing: int = 10,
    fee_bps: int = 30,
) -> ClmmConfig:
    """Create a concentrated liquidity config.

    Args:
        positions: (lower, upper, liquidity) triples
        current_tick: Starting tick
        tick_spacing: Tick spacing
        fee_bps: Fee in basis points

    Returns:
        ClmmConfig over WETH/USDC
    """
    return ClmmConfig(
        pair=make_pair(),
        fee=FeeTier.from_bps(fee_bps),
        tick_spacing=tick_spacing,
        current_tick=current_tick,
        positions=tuple(Position.new(lo, hi, liq) for lo, hi, liq in positions),
    )


def hybrid_config(
    reserves: tuple[int, ...] = (1_000_000, 1_000_000),
    amplification: int = 100,
    fee_bps: int = 4,
    addresses: tuple[str, ...] = (USDC, USDT, DAI),
) -> HybridConfig:
    """Create a stableswap config with one token per reserve."""
    return HybridConfig(
        tokens=tuple(make_token(a) for a in addresses[: len(reserves)]),
        reserves=reserves,
        amplification=amplification,
        fee=FeeTier.from_bps(fee_bps),
    )


def weighted_config(
    reserves: tuple[int, ...] = (1_000_000, 1_000_000),
    weights: tuple[int, ...] = (5_000, 5_000),
    fee_bps: int = 30,
    numeric: str = "fixed",
    addresses: tuple[str, ...] = (WETH, USDC, DAI),
) -> WeightedConfig:
    """Create a weighted pool config with one token per reserve."""
    return WeightedConfig(
        tokens=tuple(make_token(a) for a in addresses[: len(reserves)]),
        weights=weights,
        reserves=reserves,
        fee=FeeTier.from_bps(fee_bps),
        numeric=numeric,  # type: ignore[arg-type]
    )


def dynamic_config(
    reserve_base: int = 1_000_000,
    reserve_quote: int = 1_000_000,
    oracle_price: str = "1",
    k: str = "0.5",
    fee_bps: int = 0,
    numeric: str = "decimal",
) -> DynamicConfig:
    """Create a PMM config over WETH/USDC."""
    return DynamicConfig(
        pair=make_pair(),
        fee=FeeTier.from_bps(fee_bps),
        oracle_price=Price(Decimal(oracle_price)),
        slippage_coefficient=Decimal(k),
        reserve_base=reserve_base,
        reserve_quote=reserve_quote,
        numeric=numeric,  # type: ignore[arg-type]
    )


def make_order(
    side: OrderSide = OrderSide.BID,
    price: str = "1",
    quantity: int = 1_000,
    sequence: int = 0,
) -> RestingOrder:
    """Create a resting order.

    Args:
        side: BID or ASK
        price: Limit price in quote per base, as a decimal string
        quantity: Base quantity
        sequence: Arrival order

    Returns:
        RestingOrder instance
    """
    return RestingOrder(side, Decimal(price), quantity, sequence)


def orderbook_config(
    orders: tuple[RestingOrder, ...] = (),
    fallback: FallbackConfig | None = None,
    fee_bps: int = 0,
    tick_size: str = "0.01",
    lot_size: int = 1,
) -> OrderBookConfig:
    """Create an order book over WETH/USDC backed by a constant product pool."""
    return OrderBookConfig(
        pair=make_pair(),
        fee=FeeTier.from_bps(fee_bps),
        tick_size=Decimal(tick_size),
        lot_size=lot_size,
        fallback=fallback if fallback is not None else cp_config(fee_bps=30),
        orders=orders,
    )


__all__ = [
    "clmm_config",
    "cp_config",
    "dynamic_config",
    "hybrid_config",
    "make_order",
    "make_pair",
    "make_token",
    "orderbook_config",
    "weighted_config",
]
