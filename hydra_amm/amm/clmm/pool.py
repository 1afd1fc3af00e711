"""Concentrated liquidity pool.

Liquidity is placed over tick ranges; a swap walks the price across
initialized ticks, adding or removing each range's liquidity as it enters
or leaves. Fees accrue per unit of liquidity (Q128) globally and outside
every initialized tick, so each position's share can be recovered exactly.

The pair's base token is token0 and its quote token is token1; prices are
token1 per token0.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right, insort
from dataclasses import dataclass, field, replace

import structlog

from hydra_amm.amm.base import orient_price, resolve_pair_direction
from hydra_amm.config.models import ClmmConfig
from hydra_amm.errors import (
    ArithmeticOverflow,
    InsufficientLiquidity,
    InvalidLiquidityChange,
    InvalidTick,
    PositionNotFound,
    TickOutOfRange,
    ZeroOutputAmount,
)
from hydra_amm.models.liquidity import LiquidityAction, LiquidityChange, LiquidityReceipt
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import (
    Amount,
    FeeTier,
    Liquidity,
    Position,
    Price,
    Tick,
    Token,
    TokenPair,
)
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

from . import tick_math
from .constants import (
    FEE_GROWTH_MODULUS,
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    PIPS_PER_BPS,
    Q128,
)
from .sqrt_price_math import amounts_for_liquidity
from .swap_math import compute_swap_step
from .tick_math import get_sqrt_ratio_at_tick, get_tick_at_sqrt_ratio

logger = structlog.get_logger()

PositionKey = tuple[int, int]


@dataclass(frozen=True)
class TickInfo:
    """State stored at an initialized tick.

    Attributes:
        liquidity_gross: Total liquidity of positions referencing the tick
        liquidity_net: Liquidity added when crossing the tick left to right
        fee_growth_outside0_x128: Token0 fee growth on the other side of
            the tick from the current price
        fee_growth_outside1_x128: Token1 fee growth on the other side
    """

    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside0_x128: int = 0
    fee_growth_outside1_x128: int = 0

    def cross(self, fee_growth_global0_x128: int, fee_growth_global1_x128: int) -> TickInfo:
        """Flip the outside accumulators as the price moves through the tick."""
        return replace(
            self,
            fee_growth_outside0_x128=_wrap(fee_growth_global0_x128 - self.fee_growth_outside0_x128),
            fee_growth_outside1_x128=_wrap(fee_growth_global1_x128 - self.fee_growth_outside1_x128),
        )


@dataclass(frozen=True)
class PositionInfo:
    """Liquidity and fee bookkeeping for one tick range."""

    liquidity: int
    fee_growth_inside0_last_x128: int
    fee_growth_inside1_last_x128: int
    tokens_owed0: int = 0
    tokens_owed1: int = 0


@dataclass(frozen=True)
class _Crossing:
    tick: int
    fee_growth_global0_x128: int
    fee_growth_global1_x128: int


@dataclass(frozen=True)
class _SwapOutcome:
    result: SwapResult
    sqrt_price_x96: int
    tick: int
    liquidity: int
    fee_growth_global0_x128: int
    fee_growth_global1_x128: int
    crossings: tuple[_Crossing, ...]
    reserve0: int
    reserve1: int


@dataclass(frozen=True)
class _PositionUpdate:
    key: PositionKey
    position: PositionInfo
    ticks: dict[int, TickInfo]
    active_delta: int
    amount0: int
    amount1: int


def _wrap(value: int) -> int:
    return value % FEE_GROWTH_MODULUS


@dataclass
class ClmmPool:
    """Concentrated liquidity pool over a token pair.

    Attributes:
        pair: (token0, token1) as (base, quote)
        fee: Fee tier charged on input
        tick_spacing: Distance between usable ticks
        sqrt_price_x96: Current sqrt price in Q64.96
        tick: Current tick, the greatest tick at or below the price
        liquidity: Liquidity active at the current price
        reserve0: Token0 held by the pool, owed fees included
        reserve1: Token1 held by the pool, owed fees included
    """

    pair: TokenPair
    fee: FeeTier
    tick_spacing: int
    sqrt_price_x96: int
    tick: int
    liquidity: int = 0
    fee_growth_global0_x128: int = 0
    fee_growth_global1_x128: int = 0
    reserve0: int = 0
    reserve1: int = 0
    max_liquidity_per_tick: int = 0
    ticks: dict[int, TickInfo] = field(default_factory=dict)
    positions: dict[PositionKey, PositionInfo] = field(default_factory=dict)
    _initialized_ticks: list[int] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_liquidity_per_tick == 0:
            self.max_liquidity_per_tick = tick_math.max_liquidity_per_tick(self.tick_spacing)
        self._initialized_ticks = sorted(
            tick for tick, info in self.ticks.items() if info.liquidity_gross > 0
        )

    @classmethod
    def from_config(
        cls, config: ClmmConfig, settings: EngineSettings = DEFAULT_SETTINGS
    ) -> ClmmPool:
        """Build a pool at the configured tick and mint every initial position.

        Raises:
            InvalidConfiguration: If spacing or fee are out of bounds
            InvalidTick: If a tick is not aligned to the spacing
            ArithmeticOverflow: If a tick's gross liquidity exceeds the per-tick cap
        """
        config.validate(settings)
        pool = cls(
            pair=config.pair,
            fee=config.fee,
            tick_spacing=config.tick_spacing,
            sqrt_price_x96=get_sqrt_ratio_at_tick(config.current_tick),
            tick=config.current_tick,
        )
        for position in config.positions:
            pool.add_liquidity(LiquidityChange.for_position(position, LiquidityAction.ADD))
        logger.debug(
            "pool_created",
            pool_type=config.pool_type,
            pair=str(config.pair),
            tick=config.current_tick,
            positions=len(config.positions),
            liquidity=pool.liquidity,
        )
        return pool

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        outcome = self._simulate(spec, token_in, token_out)
        for crossing in outcome.crossings:
            self.ticks[crossing.tick] = self.ticks[crossing.tick].cross(
                crossing.fee_growth_global0_x128, crossing.fee_growth_global1_x128
            )
        self.sqrt_price_x96 = outcome.sqrt_price_x96
        self.tick = outcome.tick
        self.liquidity = outcome.liquidity
        self.fee_growth_global0_x128 = outcome.fee_growth_global0_x128
        self.fee_growth_global1_x128 = outcome.fee_growth_global1_x128
        self.reserve0 = outcome.reserve0
        self.reserve1 = outcome.reserve1
        return outcome.result

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._simulate(spec, token_in, token_out).result

    def _simulate(self, spec: SwapSpec, token_in: Token, token_out: Token | None) -> _SwapOutcome:
        resolved_out, zero_for_one = resolve_pair_direction(self.pair, token_in, token_out)
        exact_in = spec.is_exact_in
        fee_pips = self.fee.bps.value * PIPS_PER_BPS
        sqrt_price_limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        if (zero_for_one and self.sqrt_price_x96 <= sqrt_price_limit) or (
            not zero_for_one and self.sqrt_price_x96 >= sqrt_price_limit
        ):
            raise TickOutOfRange("Price is already at the edge of the tick range")
        if self.liquidity == 0 and self._next_initialized_tick(self.tick, zero_for_one) is None:
            raise InsufficientLiquidity("No liquidity in the swap direction")

        remaining = spec.amount.value
        calculated = 0
        fee_total = 0
        sqrt_price = self.sqrt_price_x96
        tick = self.tick
        liquidity = self.liquidity
        fee_growth0 = self.fee_growth_global0_x128
        fee_growth1 = self.fee_growth_global1_x128
        crossings: list[_Crossing] = []

        while remaining > 0 and sqrt_price != sqrt_price_limit:
            next_tick = self._next_initialized_tick(tick, zero_for_one)
            initialized = next_tick is not None
            if next_tick is None:
                next_tick = MIN_TICK if zero_for_one else MAX_TICK
            sqrt_price_next_tick = get_sqrt_ratio_at_tick(next_tick)

            if zero_for_one:
                target = max(sqrt_price_next_tick, sqrt_price_limit)
            else:
                target = min(sqrt_price_next_tick, sqrt_price_limit)

            step_start = sqrt_price
            step = compute_swap_step(sqrt_price, target, liquidity, remaining, fee_pips, exact_in)
            sqrt_price = step.sqrt_price_next_x96

            if exact_in:
                remaining -= step.amount_in + step.fee_amount
                calculated += step.amount_out
            else:
                remaining -= step.amount_out
                calculated += step.amount_in + step.fee_amount
            fee_total += step.fee_amount

            if liquidity > 0:
                growth = step.fee_amount * Q128 // liquidity
                if zero_for_one:
                    fee_growth0 = _wrap(fee_growth0 + growth)
                else:
                    fee_growth1 = _wrap(fee_growth1 + growth)

            if sqrt_price == sqrt_price_next_tick:
                if initialized:
                    crossings.append(_Crossing(next_tick, fee_growth0, fee_growth1))
                    liquidity_net = self.ticks[next_tick].liquidity_net
                    liquidity += -liquidity_net if zero_for_one else liquidity_net
                tick = next_tick - 1 if zero_for_one else next_tick
            elif sqrt_price != step_start:
                tick = get_tick_at_sqrt_ratio(sqrt_price)

        if remaining > 0:
            logger.debug(
                "clmm_swap_exhausted",
                pair=str(self.pair),
                remaining=remaining,
                zero_for_one=zero_for_one,
            )
            raise TickOutOfRange("Swap would move the price past the global tick range")

        if exact_in:
            amount_in, amount_out = spec.amount.value, calculated
            if amount_out == 0:
                raise ZeroOutputAmount(f"Input {amount_in} is too small to produce output")
        else:
            amount_in, amount_out = calculated, spec.amount.value

        if zero_for_one:
            reserve0 = Amount(self.reserve0).add(amount_in).value
            reserve1 = self._draw(self.reserve1, amount_out)
        else:
            reserve1 = Amount(self.reserve1).add(amount_in).value
            reserve0 = self._draw(self.reserve0, amount_out)

        result = SwapResult(
            amount_in=Amount(amount_in),
            amount_out=Amount(amount_out),
            fee=Amount(fee_total),
            token_in=token_in,
            token_out=resolved_out,
            price_after=_price_from_sqrt(sqrt_price),
            tick_after=Tick(tick),
        )
        return _SwapOutcome(
            result=result,
            sqrt_price_x96=sqrt_price,
            tick=tick,
            liquidity=liquidity,
            fee_growth_global0_x128=fee_growth0,
            fee_growth_global1_x128=fee_growth1,
            crossings=tuple(crossings),
            reserve0=reserve0,
            reserve1=reserve1,
        )

    def _next_initialized_tick(self, tick: int, lte: bool) -> int | None:
        """Nearest initialized tick at or below tick (lte) or strictly above it."""
        if lte:
            index = bisect_right(self._initialized_ticks, tick)
            return self._initialized_ticks[index - 1] if index > 0 else None
        index = bisect_right(self._initialized_ticks, tick)
        return self._initialized_ticks[index] if index < len(self._initialized_ticks) else None

    @staticmethod
    def _draw(reserve: int, amount: int) -> int:
        if amount > reserve:
            raise InsufficientLiquidity(f"Pool holds {reserve}, cannot pay {amount}")
        return reserve - amount

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Mint liquidity over a tick range.

        Token amounts owed by the depositor are rounded up.

        Raises:
            InvalidLiquidityChange: If the change has no tick range
            InvalidTick: If a bound is not aligned to the tick spacing
            ArithmeticOverflow: If a tick's gross liquidity exceeds the cap
        """
        lower, upper, amount = self._range_of(change, LiquidityAction.ADD)
        update = self._modify_position(lower, upper, amount)
        reserve0 = Amount(self.reserve0).add(update.amount0).value
        reserve1 = Amount(self.reserve1).add(update.amount1).value
        self._commit_position(update)
        self.reserve0 = reserve0
        self.reserve1 = reserve1
        return LiquidityReceipt(
            amounts=(Amount(update.amount0), Amount(update.amount1)),
            liquidity=Liquidity(amount),
        )

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Burn liquidity from a tick range and pay out its principal.

        Principal is rounded down. Fees accrued by the position stay owed
        and are paid by collect_fees.

        Raises:
            InvalidLiquidityChange: If the change has no tick range
            PositionNotFound: If no position exists for the range
            InsufficientLiquidity: If more liquidity is burned than the position holds
        """
        lower, upper, amount = self._range_of(change, LiquidityAction.REMOVE)
        existing = self.positions.get((lower, upper))
        if existing is None:
            raise PositionNotFound(f"No position for range [{lower}, {upper})")
        if amount > existing.liquidity:
            raise InsufficientLiquidity(
                f"Position holds {existing.liquidity}, cannot burn {amount}"
            )
        update = self._modify_position(lower, upper, -amount)
        reserve0 = self._draw(self.reserve0, update.amount0)
        reserve1 = self._draw(self.reserve1, update.amount1)
        self._commit_position(update)
        self.reserve0 = reserve0
        self.reserve1 = reserve1
        return LiquidityReceipt(
            amounts=(Amount(update.amount0), Amount(update.amount1)),
            liquidity=Liquidity(amount),
        )

    def collect_fees(self, position: Position) -> tuple[Amount, Amount]:
        """Pay out and zero the fees owed to a position's range.

        Args:
            position: Position whose range to collect for; its liquidity is ignored

        Returns:
            Tuple of (token0 fees, token1 fees)

        Raises:
            PositionNotFound: If no position exists for the range
        """
        lower, upper = position.range
        if (lower, upper) not in self.positions:
            raise PositionNotFound(f"No position for range [{lower}, {upper})")
        update = self._modify_position(lower, upper, 0)
        owed0 = update.position.tokens_owed0
        owed1 = update.position.tokens_owed1
        reserve0 = self._draw(self.reserve0, owed0)
        reserve1 = self._draw(self.reserve1, owed1)
        cleared = replace(update.position, tokens_owed0=0, tokens_owed1=0)
        self._commit_position(replace(update, position=cleared))
        self.reserve0 = reserve0
        self.reserve1 = reserve1
        return Amount(owed0), Amount(owed1)

    def _range_of(
        self, change: LiquidityChange, action: LiquidityAction
    ) -> tuple[int, int, int]:
        if change.action is not action:
            raise InvalidLiquidityChange(
                f"Expected a {action.value} request, got {change.action.value}"
            )
        if change.lower is None or change.upper is None:
            raise InvalidLiquidityChange("Concentrated liquidity changes need a tick range")
        if change.liquidity is None:
            raise InvalidLiquidityChange("Concentrated liquidity changes need a liquidity amount")
        for bound in (change.lower, change.upper):
            if not bound.is_aligned(self.tick_spacing):
                raise InvalidTick(
                    f"Tick {bound.value} not aligned to spacing {self.tick_spacing}"
                )
        return change.lower.value, change.upper.value, change.liquidity.value

    def _modify_position(self, lower: int, upper: int, delta: int) -> _PositionUpdate:
        """Compute the effect of changing a position's liquidity by delta.

        Nothing is written; the returned update is applied by _commit_position.
        """
        ticks: dict[int, TickInfo] = {}
        if delta != 0:
            ticks[lower] = self._update_tick(lower, delta, upper=False)
            ticks[upper] = self._update_tick(upper, delta, upper=True)

        lower_info = ticks.get(lower, self.ticks.get(lower, TickInfo()))
        upper_info = ticks.get(upper, self.ticks.get(upper, TickInfo()))
        inside0, inside1 = self._fee_growth_inside(lower, upper, lower_info, upper_info)

        existing = self.positions.get((lower, upper))
        if existing is None:
            existing = PositionInfo(0, inside0, inside1)
        owed0 = _wrap(inside0 - existing.fee_growth_inside0_last_x128) * existing.liquidity // Q128
        owed1 = _wrap(inside1 - existing.fee_growth_inside1_last_x128) * existing.liquidity // Q128
        position = PositionInfo(
            liquidity=existing.liquidity + delta,
            fee_growth_inside0_last_x128=inside0,
            fee_growth_inside1_last_x128=inside1,
            tokens_owed0=existing.tokens_owed0 + owed0,
            tokens_owed1=existing.tokens_owed1 + owed1,
        )

        amount0, amount1 = amounts_for_liquidity(
            self.sqrt_price_x96,
            get_sqrt_ratio_at_tick(lower),
            get_sqrt_ratio_at_tick(upper),
            abs(delta),
            round_up=delta > 0,
        )
        active_delta = delta if lower <= self.tick < upper else 0
        return _PositionUpdate((lower, upper), position, ticks, active_delta, amount0, amount1)

    def _update_tick(self, tick: int, delta: int, upper: bool) -> TickInfo:
        info = self.ticks.get(tick, TickInfo())
        gross_after = info.liquidity_gross + delta
        if gross_after > self.max_liquidity_per_tick:
            raise ArithmeticOverflow(
                f"Tick {tick} liquidity {gross_after} exceeds {self.max_liquidity_per_tick}"
            )
        if info.liquidity_gross == 0 and tick <= self.tick:
            # All growth so far is assumed to have happened below the tick
            info = replace(
                info,
                fee_growth_outside0_x128=self.fee_growth_global0_x128,
                fee_growth_outside1_x128=self.fee_growth_global1_x128,
            )
        net_delta = -delta if upper else delta
        return replace(
            info, liquidity_gross=gross_after, liquidity_net=info.liquidity_net + net_delta
        )

    def _fee_growth_inside(
        self, lower: int, upper: int, lower_info: TickInfo, upper_info: TickInfo
    ) -> tuple[int, int]:
        global0, global1 = self.fee_growth_global0_x128, self.fee_growth_global1_x128
        if self.tick >= lower:
            below0 = lower_info.fee_growth_outside0_x128
            below1 = lower_info.fee_growth_outside1_x128
        else:
            below0 = _wrap(global0 - lower_info.fee_growth_outside0_x128)
            below1 = _wrap(global1 - lower_info.fee_growth_outside1_x128)
        if self.tick < upper:
            above0 = upper_info.fee_growth_outside0_x128
            above1 = upper_info.fee_growth_outside1_x128
        else:
            above0 = _wrap(global0 - upper_info.fee_growth_outside0_x128)
            above1 = _wrap(global1 - upper_info.fee_growth_outside1_x128)
        return _wrap(global0 - below0 - above0), _wrap(global1 - below1 - above1)

    def _commit_position(self, update: _PositionUpdate) -> None:
        for tick, info in update.ticks.items():
            if info.liquidity_gross == 0:
                self.ticks.pop(tick, None)
                index = bisect_left(self._initialized_ticks, tick)
                if index < len(self._initialized_ticks) and self._initialized_ticks[index] == tick:
                    del self._initialized_ticks[index]
            else:
                if tick not in self.ticks:
                    insort(self._initialized_ticks, tick)
                self.ticks[tick] = info

        position = update.position
        if position.liquidity == 0 and position.tokens_owed0 == 0 and position.tokens_owed1 == 0:
            self.positions.pop(update.key, None)
        else:
            self.positions[update.key] = position
        self.liquidity += update.active_delta

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def spot_price(self, base: Token, quote: Token) -> Price:
        return orient_price(self.pair, base, quote, _price_from_sqrt(self.sqrt_price_x96))

    def token_pair(self) -> TokenPair:
        return self.pair

    def fee_tier(self) -> FeeTier:
        return self.fee

    def total_liquidity(self) -> Liquidity:
        return Liquidity(self.liquidity)

    def position(self, lower: int, upper: int) -> PositionInfo:
        """Bookkeeping for a range.

        Raises:
            PositionNotFound: If no position exists for the range
        """
        try:
            return self.positions[(lower, upper)]
        except KeyError:
            raise PositionNotFound(f"No position for range [{lower}, {upper})") from None

    @property
    def reserves(self) -> tuple[int, int]:
        return (self.reserve0, self.reserve1)


def _price_from_sqrt(sqrt_price_x96: int) -> Price:
    return Price.from_ratio(sqrt_price_x96 * sqrt_price_x96, 1 << 192)


__all__ = ["ClmmPool", "PositionInfo", "TickInfo"]
