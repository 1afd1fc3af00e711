"""Pool construction and dispatch package.

Provides create_pool, which turns any AmmConfig into a PoolBox, the
uniform handle every caller trades through.
"""

from .factory import build_pool, create_pool
from .pool_box import PoolBox, PoolKind, pool_kind
from .types import (
    AnyPool,
    ClmmPool,
    ConstantProductPool,
    DynamicPool,
    HybridPool,
    OrderBookPool,
    WeightedPool,
)

__all__ = [
    "AnyPool",
    "ClmmPool",
    "ConstantProductPool",
    "DynamicPool",
    "HybridPool",
    "OrderBookPool",
    "PoolBox",
    "PoolKind",
    "WeightedPool",
    "build_pool",
    "create_pool",
    "pool_kind",
]
