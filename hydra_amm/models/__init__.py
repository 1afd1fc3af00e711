"""Domain models for the AMM engine."""

from hydra_amm.models.liquidity import LiquidityAction, LiquidityChange, LiquidityReceipt
from hydra_amm.models.order import OrderSide, RestingOrder
from hydra_amm.models.swap import SwapKind, SwapResult, SwapSpec
from hydra_amm.models.types import (
    Amount,
    BasisPoints,
    Decimals,
    FeeTier,
    Liquidity,
    Position,
    Price,
    Tick,
    Token,
    TokenAddress,
    TokenPair,
    is_valid_address,
    normalize_address,
)

__all__ = [
    "Amount",
    "BasisPoints",
    "Decimals",
    "FeeTier",
    "Liquidity",
    "LiquidityAction",
    "LiquidityChange",
    "LiquidityReceipt",
    "OrderSide",
    "Position",
    "Price",
    "RestingOrder",
    "SwapKind",
    "SwapResult",
    "SwapSpec",
    "Tick",
    "Token",
    "TokenAddress",
    "TokenPair",
    "is_valid_address",
    "normalize_address",
]
