"""Dynamic (PMM) pool priced around a fixed oracle price."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

import structlog

from hydra_amm.amm.base import (
    orient_price,
    require_share_change,
    resolve_pair_direction,
    shares_to_burn,
)
from hydra_amm.config.models import DynamicConfig
from hydra_amm.constants import AMOUNT_MAX
from hydra_amm.errors import (
    ConvergenceFailure,
    InsufficientLiquidity,
    InvalidConfiguration,
    ZeroAmount,
    ZeroOutputAmount,
)
from hydra_amm.math.numeric import NumericBackend, get_backend
from hydra_amm.math.rounding import Rounding
from hydra_amm.models.liquidity import LiquidityAction, LiquidityChange, LiquidityReceipt
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import Amount, FeeTier, Liquidity, Price, Token, TokenPair
from hydra_amm.safe_int import S
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

from .pmm_math import PMMState, RState, adjusted_targets, marginal_price, sell_base, sell_quote

logger = structlog.get_logger()


@dataclass
class DynamicPool:
    """Proactive market maker over a token pair.

    Attributes:
        pair: Token pair; state.base holds pair.base
        fee: Fee tier charged on input; the fee stays in the pool
        oracle_price: Reference price i in quote per base
        slippage_coefficient: k in [0, 1]
        state: Balances, targets and R state
        total_shares: Outstanding LP shares, locked shares included
        locked_shares: Shares minted on creation that can never be burned
        search_iterations: Bound on each phase of the exact-output search
        backend: Numeric backend pricing runs on
    """

    pair: TokenPair
    fee: FeeTier
    oracle_price: Price
    slippage_coefficient: Decimal
    state: PMMState
    total_shares: int
    locked_shares: int
    search_iterations: int
    backend: NumericBackend = field(repr=False, compare=False)  # type: ignore[type-arg]

    @classmethod
    def from_config(
        cls, config: DynamicConfig, settings: EngineSettings = DEFAULT_SETTINGS
    ) -> DynamicPool:
        """Build a balanced pool; initial shares equal the base reserve."""
        config.validate(settings)
        backend = get_backend(config.numeric)
        _check_oracle_price(backend, config.oracle_price)
        shares = config.reserve_base
        pool = cls(
            pair=config.pair,
            fee=config.fee,
            oracle_price=config.oracle_price,
            slippage_coefficient=config.slippage_coefficient,
            state=PMMState.balanced(config.reserve_base, config.reserve_quote),
            total_shares=shares,
            locked_shares=min(settings.minimum_liquidity, shares),
            search_iterations=settings.search_iterations,
            backend=backend,
        )
        logger.debug(
            "pool_created",
            pool_type=config.pool_type,
            pair=str(config.pair),
            oracle_price=str(config.oracle_price),
            k=str(config.slippage_coefficient),
            numeric=pool.backend.name,
        )
        return pool

    @property
    def _i(self) -> Any:
        return self.backend.from_decimal(self.oracle_price.value, Rounding.DOWN)

    @property
    def _k(self) -> Any:
        return self.backend.from_decimal(self.slippage_coefficient, Rounding.UP)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        result, state = self._trade(spec, token_in, token_out)
        self.state = state
        return result

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._trade(spec, token_in, token_out)[0]

    def _trade(
        self, spec: SwapSpec, token_in: Token, token_out: Token | None
    ) -> tuple[SwapResult, PMMState]:
        resolved_out, base_in = resolve_pair_direction(self.pair, token_in, token_out)
        state = adjusted_targets(self.backend, self.state, self._i, self._k)
        available = state.quote if base_in else state.base

        if spec.is_exact_in:
            gross = spec.amount.value
            fee = self.fee.fee_on(gross)
            amount_out, r = self._sell(state, base_in, gross - fee)
            if amount_out == 0:
                raise ZeroOutputAmount(f"Input {gross} is too small to produce output")
            if amount_out >= available:
                raise InsufficientLiquidity(
                    f"Output {amount_out} would drain the reserve of {available}"
                )
        else:
            amount_out = spec.amount.value
            if amount_out >= available:
                raise InsufficientLiquidity(
                    f"Requested output {amount_out} exceeds reserve {available}"
                )
            net, r = self._search_input(state, base_in, amount_out)
            gross = self.fee.gross_up(net)
            fee = self.fee.fee_on(gross)

        if base_in:
            base = Amount(state.base).add(gross).value
            quote = state.quote - amount_out
        else:
            base = state.base - amount_out
            quote = Amount(state.quote).add(gross).value
        new_state = replace(state, base=base, quote=quote, r=r)

        result = SwapResult(
            amount_in=Amount(gross),
            amount_out=Amount(amount_out),
            fee=Amount(fee),
            token_in=token_in,
            token_out=resolved_out,
            price_after=self._mid_price(new_state),
        )
        return result, new_state

    def _sell(self, state: PMMState, base_in: bool, pay: int) -> tuple[int, RState]:
        if base_in:
            return sell_base(self.backend, state, pay, self._i, self._k)
        return sell_quote(self.backend, state, pay, self._i, self._k)

    def _search_input(self, state: PMMState, base_in: bool, amount_out: int) -> tuple[int, RState]:
        """Smallest net input whose output covers amount_out.

        Doubles an upper bound until it suffices, then bisects down to the
        minimum. Each phase runs at most search_iterations steps.

        Raises:
            InsufficientLiquidity: If no input within 128 bits reaches amount_out
            ConvergenceFailure: If a phase exceeds search_iterations
        """
        high = 1
        iterations = 0
        while self._sell(state, base_in, high)[0] < amount_out:
            if high > AMOUNT_MAX:
                raise InsufficientLiquidity(f"No input can buy {amount_out}")
            if iterations == self.search_iterations:
                raise ConvergenceFailure("Exact-output search did not bracket a solution")
            high *= 2
            iterations += 1

        low = high // 2
        iterations = 0
        while high - low > 1:
            if iterations == self.search_iterations:
                raise ConvergenceFailure("Exact-output search did not converge")
            mid = (low + high) // 2
            if self._sell(state, base_in, mid)[0] >= amount_out:
                high = mid
            else:
                low = mid
            iterations += 1

        return high, self._sell(state, base_in, high)[1]

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Deposit both tokens at the current balance ratio.

        Targets scale with the share supply, so the R state and the
        marginal price are unchanged.

        Raises:
            InvalidLiquidityChange: If the change is not a two-amount deposit
            ZeroAmount: If the deposit is too small to mint a share
        """
        require_share_change(change, 2, LiquidityAction.ADD)
        amount_base, amount_quote = (a.value for a in change.amounts)
        state = self.state
        supply = S(self.total_shares)
        minted = min(
            S(amount_base) * supply // S(state.base),
            S(amount_quote) * supply // S(state.quote),
        ).value
        if minted == 0:
            raise ZeroAmount("Deposit too small to mint liquidity")

        used_base = (S(minted) * S(state.base)).div(supply, Rounding.UP).value
        used_quote = (S(minted) * S(state.quote)).div(supply, Rounding.UP).value
        new_supply = Liquidity(self.total_shares).add(minted).value

        self.state = PMMState(
            base=Amount(state.base).add(used_base).value,
            quote=Amount(state.quote).add(used_quote).value,
            base_target=_scale(state.base_target, new_supply, self.total_shares),
            quote_target=_scale(state.quote_target, new_supply, self.total_shares),
            r=state.r,
        )
        self.total_shares = new_supply
        return LiquidityReceipt(
            amounts=(Amount(used_base), Amount(used_quote)),
            liquidity=Liquidity(minted),
        )

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Burn shares for a proportional slice of both balances (rounded down).

        Raises:
            InvalidLiquidityChange: If the change carries a tick range
            InsufficientLiquidity: If shares exceed the unlocked supply
        """
        shares = shares_to_burn(change, 2)
        if shares > self.total_shares - self.locked_shares or shares >= self.total_shares:
            raise InsufficientLiquidity(
                f"Cannot burn {shares} shares; {self.total_shares - self.locked_shares} unlocked"
            )
        state = self.state
        supply = S(self.total_shares)
        out_base = (S(shares) * S(state.base) // supply).value
        out_quote = (S(shares) * S(state.quote) // supply).value
        if out_base >= state.base or out_quote >= state.quote:
            raise InsufficientLiquidity("Withdrawal would empty a pool balance")
        remaining = self.total_shares - shares

        self.state = PMMState(
            base=state.base - out_base,
            quote=state.quote - out_quote,
            base_target=_scale(state.base_target, remaining, self.total_shares),
            quote_target=_scale(state.quote_target, remaining, self.total_shares),
            r=state.r,
        )
        self.total_shares = remaining
        return LiquidityReceipt(
            amounts=(Amount(out_base), Amount(out_quote)),
            liquidity=Liquidity(shares),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _mid_price(self, state: PMMState) -> Price:
        adjusted = adjusted_targets(self.backend, state, self._i, self._k)
        value = marginal_price(self.backend, adjusted, self._i, self._k)
        return Price(self.backend.to_decimal(value))

    def spot_price(self, base: Token, quote: Token) -> Price:
        return orient_price(self.pair, base, quote, self._mid_price(self.state))

    def token_pair(self) -> TokenPair:
        return self.pair

    def fee_tier(self) -> FeeTier:
        return self.fee

    def total_liquidity(self) -> Liquidity:
        return Liquidity(self.total_shares)

    @property
    def r_state(self) -> RState:
        return self.state.r

    @property
    def reserves(self) -> tuple[int, int]:
        return (self.state.base, self.state.quote)


def _check_oracle_price(
    backend: NumericBackend, oracle_price: Price  # type: ignore[type-arg]
) -> None:
    """Reject oracle prices the backend cannot represent in both directions.

    Raises:
        InvalidConfiguration: If i or 1/i rounds to zero on the backend
    """
    zero = backend.zero()
    i = backend.from_decimal(oracle_price.value, Rounding.DOWN)
    if backend.compare(i, zero) <= 0:
        raise InvalidConfiguration(
            f"oracle_price {oracle_price.value} rounds to zero on the {backend.name} backend"
        )
    if backend.compare(backend.div(backend.one(), i, Rounding.DOWN), zero) <= 0:
        raise InvalidConfiguration(
            f"Inverse of oracle_price {oracle_price.value} rounds to zero "
            f"on the {backend.name} backend"
        )


def _scale(value: int, numerator: int, denominator: int) -> int:
    return (S(value) * S(numerator) // S(denominator)).value


__all__ = ["DynamicPool"]
