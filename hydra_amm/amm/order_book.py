"""Order-book hybrid pool.

Resting limit orders fill first wherever they beat the embedded fallback
AMM's spot price; whatever the book cannot fill routes to the fallback.
Limit orders have linear pricing (no slippage curve), so every fill is an
exact integer computation on the order's price ratio.

IMPORTANT: All fill calculations use exact integer arithmetic via SafeInt.
Order prices are converted to integer ratios, never to floats.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import TypeAlias

import structlog
from typing_extensions import assert_never

from hydra_amm.amm.base import orient_price, resolve_pair_direction
from hydra_amm.amm.clmm import ClmmPool
from hydra_amm.amm.constant_product import ConstantProductPool
from hydra_amm.amm.dynamic import DynamicPool
from hydra_amm.amm.stableswap import HybridPool
from hydra_amm.amm.weighted import WeightedPool
from hydra_amm.config.models import (
    ClmmConfig,
    ConstantProductConfig,
    DynamicConfig,
    FallbackConfig,
    HybridConfig,
    OrderBookConfig,
    WeightedConfig,
)
from hydra_amm.errors import ZeroOutputAmount
from hydra_amm.math.rounding import Rounding
from hydra_amm.models.liquidity import LiquidityChange, LiquidityReceipt
from hydra_amm.models.order import OrderSide, RestingOrder
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import Amount, FeeTier, Liquidity, Price, Token, TokenPair
from hydra_amm.safe_int import S
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

logger = structlog.get_logger()

# Any pool family an order book can fall back to
FallbackPool: TypeAlias = ConstantProductPool | ClmmPool | HybridPool | WeightedPool | DynamicPool

PriceRatio: TypeAlias = tuple[int, int]


def build_fallback(config: FallbackConfig, settings: EngineSettings) -> FallbackPool:
    """Build the fallback AMM described by config."""
    if isinstance(config, ConstantProductConfig):
        return ConstantProductPool.from_config(config, settings)
    if isinstance(config, ClmmConfig):
        return ClmmPool.from_config(config, settings)
    if isinstance(config, HybridConfig):
        return HybridPool.from_config(config, settings)
    if isinstance(config, WeightedConfig):
        return WeightedPool.from_config(config, settings)
    if isinstance(config, DynamicConfig):
        return DynamicPool.from_config(config, settings)
    assert_never(config)


def _ratio(price: Decimal) -> PriceRatio:
    numerator, denominator = price.as_integer_ratio()
    return numerator, denominator


def _beats(order: RestingOrder, reference: PriceRatio) -> bool:
    """Whether the order is at least as good as the reference price for the taker.

    Uses cross-multiplication: a/b >= c/d iff a*d >= c*b.
    """
    num, den = _ratio(order.price)
    ref_num, ref_den = reference
    if order.side is OrderSide.BID:
        return S(num) * S(ref_den) >= S(ref_num) * S(den)
    return S(num) * S(ref_den) <= S(ref_num) * S(den)


@dataclass
class _BookFill:
    """Aggregate of the fills against resting orders for one swap."""

    paid: int = 0
    received: int = 0
    orders: list[RestingOrder] = field(default_factory=list)
    filled: int = 0


@dataclass
class _Trade:
    result: SwapResult
    orders: list[RestingOrder]
    fallback: FallbackPool
    book_fee: int


@dataclass
class OrderBookPool:
    """Limit-order book over a token pair, backed by a fallback AMM.

    Attributes:
        pair: Token pair; order prices are quote per base
        fee: Fee tier charged on the input filled by the book
        tick_size: Price granularity of resting orders
        lot_size: Base quantity granularity; every fill is a multiple of it
        orders: Resting orders
        fallback: AMM that fills what the book cannot
        fees_collected: Book fees kept so far, as (base, quote)
    """

    pair: TokenPair
    fee: FeeTier
    tick_size: Decimal
    lot_size: int
    orders: list[RestingOrder]
    fallback: FallbackPool
    fees_collected: tuple[int, int] = (0, 0)

    @classmethod
    def from_config(
        cls, config: OrderBookConfig, settings: EngineSettings = DEFAULT_SETTINGS
    ) -> OrderBookPool:
        config.validate(settings)
        pool = cls(
            pair=config.pair,
            fee=config.fee,
            tick_size=config.tick_size,
            lot_size=config.lot_size,
            orders=list(config.orders),
            fallback=build_fallback(config.fallback, settings),
        )
        logger.debug(
            "pool_created",
            pool_type=config.pool_type,
            pair=str(config.pair),
            orders=len(config.orders),
            fallback=config.fallback.pool_type,
        )
        return pool

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        trade = self._trade(spec, token_in, token_out)
        self.orders = trade.orders
        self.fallback = trade.fallback
        base_fee, quote_fee = self.fees_collected
        if token_in == self.pair.base:
            base_fee += trade.book_fee
        else:
            quote_fee += trade.book_fee
        self.fees_collected = (base_fee, quote_fee)
        return trade.result

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._trade(spec, token_in, token_out).result

    def _trade(self, spec: SwapSpec, token_in: Token, token_out: Token | None) -> _Trade:
        resolved_out, base_in = resolve_pair_direction(self.pair, token_in, token_out)
        reference = self.fallback.spot_price(self.pair.base, self.pair.quote)
        fallback = copy.deepcopy(self.fallback)

        if spec.is_exact_in:
            gross = spec.amount.value
            book = self._fill_exact_in(base_in, self.fee.amount_after_fee(gross), reference)
            book_gross = self.fee.gross_up(book.paid) if book.paid else 0
            book_fee = book_gross - book.paid
            amount_out = book.received
            fallback_fee = 0
            remainder = gross - book_gross
            if remainder > 0:
                try:
                    routed = fallback.swap(SwapSpec.exact_in(remainder), token_in, resolved_out)
                except ZeroOutputAmount:
                    if book.received == 0:
                        raise
                    # Dust the fallback cannot price stays with the book as fee
                    book_fee += remainder
                else:
                    amount_out += routed.amount_out.value
                    fallback_fee = routed.fee.value
            amount_in = gross
        else:
            amount_out = spec.amount.value
            book = self._fill_exact_out(base_in, amount_out, reference)
            book_gross = self.fee.gross_up(book.paid) if book.paid else 0
            book_fee = book_gross - book.paid
            amount_in = book_gross
            fallback_fee = 0
            remainder = amount_out - book.received
            if remainder > 0:
                routed = fallback.swap(SwapSpec.exact_out(remainder), token_in, resolved_out)
                amount_in += routed.amount_in.value
                fallback_fee = routed.fee.value

        if amount_out == 0:
            raise ZeroOutputAmount(f"Input {spec.amount} is too small to produce output")

        logger.debug(
            "orderbook_routed",
            fills=book.filled,
            book_paid=book.paid,
            fallback_amount=remainder,
        )
        result = SwapResult(
            amount_in=Amount(amount_in),
            amount_out=Amount(amount_out),
            fee=Amount(book_fee + fallback_fee),
            token_in=token_in,
            token_out=resolved_out,
            price_after=fallback.spot_price(self.pair.base, self.pair.quote),
        )
        return _Trade(result, book.orders, fallback, book_fee)

    def _matchable(self, base_in: bool, reference: Price) -> list[RestingOrder]:
        """Orders a taker would hit, best first.

        Selling base hits bids at or above the reference price; buying base
        hits asks at or below it.
        """
        side = OrderSide.BID if base_in else OrderSide.ASK
        reference_ratio = _ratio(reference.value)
        matchable = [o for o in self.orders if o.side is side and _beats(o, reference_ratio)]
        return sorted(matchable, key=lambda o: o.priority())

    def _lot_floor(self, quantity: int) -> int:
        return quantity - quantity % self.lot_size

    def _fill_exact_in(self, base_in: bool, budget: int, reference: Price) -> _BookFill:
        """Spend up to budget (net of fee) against the book."""
        fill = _BookFill()
        remaining = budget
        consumed: dict[int, int] = {}
        for order in self._matchable(base_in, reference):
            num, den = _ratio(order.price)
            if base_in:
                # Base in, quote out: receive floor(quantity * price)
                quantity = min(order.quantity, self._lot_floor(remaining))
                if quantity == 0:
                    break
                cost = quantity
                proceeds = (S(quantity) * S(num) // S(den)).value
            else:
                # Quote in, base out: pay ceil(quantity * price)
                affordable = (S(remaining) * S(den) // S(num)).value
                quantity = min(order.quantity, self._lot_floor(affordable))
                if quantity == 0:
                    break
                cost = (S(quantity) * S(num)).div(den, Rounding.UP).value
                proceeds = quantity
            remaining -= cost
            fill.paid += cost
            fill.received += proceeds
            fill.filled += 1
            consumed[order.sequence] = quantity
        fill.orders = self._apply(consumed)
        return fill

    def _fill_exact_out(self, base_in: bool, target: int, reference: Price) -> _BookFill:
        """Buy up to target output from the book without overshooting it."""
        fill = _BookFill()
        remaining = target
        consumed: dict[int, int] = {}
        for order in self._matchable(base_in, reference):
            num, den = _ratio(order.price)
            if base_in:
                # Quote out: largest lot-rounded base quantity whose proceeds fit
                wanted = (S(remaining) * S(den) // S(num)).value
                quantity = min(order.quantity, self._lot_floor(wanted))
                proceeds = (S(quantity) * S(num) // S(den)).value
                cost = quantity
            else:
                quantity = min(order.quantity, self._lot_floor(remaining))
                proceeds = quantity
                cost = (S(quantity) * S(num)).div(den, Rounding.UP).value
            if quantity == 0 or proceeds == 0:
                break
            remaining -= proceeds
            fill.paid += cost
            fill.received += proceeds
            fill.filled += 1
            consumed[order.sequence] = quantity
        fill.orders = self._apply(consumed)
        return fill

    def _apply(self, consumed: dict[int, int]) -> list[RestingOrder]:
        """Resting orders after the given fills; exhausted orders drop out."""
        orders = []
        for order in self.orders:
            left = order.quantity - consumed.get(order.sequence, 0)
            if left > 0:
                orders.append(replace(order, quantity=left) if left != order.quantity else order)
        return orders

    # -------------------------------------------------------------------------
    # Liquidity (delegated to the fallback)
    # -------------------------------------------------------------------------

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        return self.fallback.add_liquidity(change)

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        return self.fallback.remove_liquidity(change)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def spot_price(self, base: Token, quote: Token) -> Price:
        pair_price = self.fallback.spot_price(self.pair.base, self.pair.quote)
        return orient_price(self.pair, base, quote, pair_price)

    def token_pair(self) -> TokenPair:
        return self.pair

    def fee_tier(self) -> FeeTier:
        return self.fee

    def total_liquidity(self) -> Liquidity:
        return self.fallback.total_liquidity()

    def depth(self, side: OrderSide) -> int:
        """Total resting base quantity on one side of the book."""
        return sum(o.quantity for o in self.orders if o.side is side)


__all__ = ["FallbackPool", "OrderBookPool", "build_fallback"]
