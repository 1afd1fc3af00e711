"""Pool type definitions.

Provides the AnyPool union type for use throughout the codebase.
"""

from typing import TypeAlias

from hydra_amm.amm.clmm import ClmmPool
from hydra_amm.amm.constant_product import ConstantProductPool
from hydra_amm.amm.dynamic import DynamicPool
from hydra_amm.amm.order_book import OrderBookPool
from hydra_amm.amm.stableswap import HybridPool
from hydra_amm.amm.weighted import WeightedPool

# Union type for all pool types
AnyPool: TypeAlias = (
    ConstantProductPool | ClmmPool | HybridPool | WeightedPool | DynamicPool | OrderBookPool
)

__all__ = [
    "AnyPool",
    "ClmmPool",
    "ConstantProductPool",
    "DynamicPool",
    "HybridPool",
    "OrderBookPool",
    "WeightedPool",
]
