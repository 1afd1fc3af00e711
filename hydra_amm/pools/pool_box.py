"""Closed wrapper over exactly one pool variant."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from typing_extensions import assert_never

from hydra_amm.errors import UnsupportedOperation
from hydra_amm.models.liquidity import LiquidityChange, LiquidityReceipt
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import Amount, FeeTier, Liquidity, Position, Price, Token, TokenPair

from .types import (
    AnyPool,
    ClmmPool,
    ConstantProductPool,
    DynamicPool,
    HybridPool,
    OrderBookPool,
    WeightedPool,
)


class PoolKind(str, Enum):
    """Pool family tag; values match the config pool_type discriminator."""

    CONSTANT_PRODUCT = "constant_product"
    CLMM = "clmm"
    HYBRID = "hybrid"
    WEIGHTED = "weighted"
    DYNAMIC = "dynamic"
    ORDERBOOK = "orderbook"


def pool_kind(pool: AnyPool) -> PoolKind:
    """Tag for a pool instance."""
    if isinstance(pool, ConstantProductPool):
        return PoolKind.CONSTANT_PRODUCT
    if isinstance(pool, ClmmPool):
        return PoolKind.CLMM
    if isinstance(pool, HybridPool):
        return PoolKind.HYBRID
    if isinstance(pool, WeightedPool):
        return PoolKind.WEIGHTED
    if isinstance(pool, DynamicPool):
        return PoolKind.DYNAMIC
    if isinstance(pool, OrderBookPool):
        return PoolKind.ORDERBOOK
    assert_never(pool)


@dataclass
class PoolBox:
    """Uniform handle on a pool of any family.

    Every contract method forwards to the wrapped pool, so callers never
    branch on the family. Family-specific operations are reached through
    `pool`, or through the few methods here that raise UnsupportedOperation
    on families that lack them.
    """

    _pool: AnyPool

    @property
    def pool(self) -> AnyPool:
        return self._pool

    @property
    def kind(self) -> PoolKind:
        return pool_kind(self._pool)

    # SwapPool
    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._pool.swap(spec, token_in, token_out)

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._pool.quote(spec, token_in, token_out)

    def spot_price(self, base: Token, quote: Token) -> Price:
        return self._pool.spot_price(base, quote)

    def token_pair(self) -> TokenPair:
        return self._pool.token_pair()

    def fee_tier(self) -> FeeTier:
        return self._pool.fee_tier()

    def total_liquidity(self) -> Liquidity:
        return self._pool.total_liquidity()

    # LiquidityPool
    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        return self._pool.add_liquidity(change)

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        return self._pool.remove_liquidity(change)

    def collect_fees(self, position: Position) -> tuple[Amount, Amount]:
        """Collect fees owed to a concentrated-liquidity position.

        Raises:
            UnsupportedOperation: If the pool is not concentrated liquidity
            PositionNotFound: If no position exists for the range
        """
        if not isinstance(self._pool, ClmmPool):
            raise UnsupportedOperation(f"{self.kind.value} pools do not track position fees")
        return self._pool.collect_fees(position)

    def __repr__(self) -> str:
        return f"PoolBox(kind={self.kind.value}, pair={self.token_pair()})"


__all__ = ["PoolBox", "PoolKind", "pool_kind"]
