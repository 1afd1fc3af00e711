"""AMM (Automated Market Maker) implementations."""

from hydra_amm.amm.base import FromConfig, LiquidityPool, SwapPool
from hydra_amm.amm.clmm import ClmmPool
from hydra_amm.amm.constant_product import ConstantProductPool, get_amount_in, get_amount_out
from hydra_amm.amm.dynamic import DynamicPool
from hydra_amm.amm.order_book import FallbackPool, OrderBookPool
from hydra_amm.amm.stableswap import HybridPool
from hydra_amm.amm.weighted import WeightedPool

__all__ = [
    # Contracts
    "FromConfig",
    "LiquidityPool",
    "SwapPool",
    # Constant product
    "ConstantProductPool",
    "get_amount_in",
    "get_amount_out",
    # Concentrated liquidity
    "ClmmPool",
    # Stableswap
    "HybridPool",
    # Weighted
    "WeightedPool",
    # Proactive market maker
    "DynamicPool",
    # Order book
    "FallbackPool",
    "OrderBookPool",
]
