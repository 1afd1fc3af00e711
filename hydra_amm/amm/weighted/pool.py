"""Weighted geometric-mean pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from hydra_amm.amm.base import (
    require_share_change,
    resolve_indices,
    shares_to_burn,
    token_index,
)
from hydra_amm.config.models import WeightedConfig
from hydra_amm.errors import (
    InsufficientLiquidity,
    InvalidConfiguration,
    SameToken,
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

from .weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calculate_invariant,
    spot_price_ratio,
)

logger = structlog.get_logger()


@dataclass
class WeightedPool:
    """Balancer-style weighted pool with fungible LP shares.

    Attributes:
        tokens: Pool tokens; weights and balances follow the same order
        weights: Token weights in basis points, summing to WEIGHT_TOTAL
        balances: Raw token balances
        fee: Fee tier charged on swap input
        total_shares: Outstanding LP shares, locked shares included
        locked_shares: Shares minted on creation that can never be burned
        backend: Numeric backend pricing runs on
    """

    tokens: tuple[Token, ...]
    weights: tuple[int, ...]
    balances: list[int]
    fee: FeeTier
    total_shares: int
    locked_shares: int
    backend: NumericBackend = field(repr=False, compare=False)  # type: ignore[type-arg]

    @classmethod
    def from_config(
        cls, config: WeightedConfig, settings: EngineSettings = DEFAULT_SETTINGS
    ) -> WeightedPool:
        """Build a pool; initial shares are the invariant times the token count.

        Raises:
            InvalidConfiguration: If the configuration is invalid or the
                starting invariant rounds to zero shares
        """
        config.validate(settings)
        backend = get_backend(config.numeric)
        invariant = calculate_invariant(backend, config.weights, config.reserves)
        shares = backend.to_int(
            backend.mul(invariant, backend.from_int(len(config.tokens)), Rounding.DOWN),
            Rounding.DOWN,
        )
        if shares == 0:
            raise InvalidConfiguration("Initial reserves are too small to mint shares")
        pool = cls(
            tokens=config.tokens,
            weights=config.weights,
            balances=list(config.reserves),
            fee=config.fee,
            total_shares=shares,
            locked_shares=min(settings.minimum_liquidity, shares),
            backend=backend,
        )
        logger.debug(
            "pool_created",
            pool_type=config.pool_type,
            tokens=len(config.tokens),
            numeric=backend.name,
            shares=shares,
        )
        return pool

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        result, balances = self._trade(spec, token_in, token_out)
        self.balances = balances
        return result

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._trade(spec, token_in, token_out)[0]

    def _trade(
        self, spec: SwapSpec, token_in: Token, token_out: Token | None
    ) -> tuple[SwapResult, list[int]]:
        i, j = resolve_indices(self.tokens, token_in, token_out)
        balance_in, balance_out = self.balances[i], self.balances[j]
        weight_in, weight_out = self.weights[i], self.weights[j]

        if spec.is_exact_in:
            gross = spec.amount.value
            fee = self.fee.fee_on(gross)
            amount_out = calc_out_given_in(
                self.backend, balance_in, weight_in, balance_out, weight_out, gross - fee
            )
            if amount_out == 0:
                raise ZeroOutputAmount(f"Input {gross} is too small to produce output")
        else:
            amount_out = spec.amount.value
            net = calc_in_given_out(
                self.backend, balance_in, weight_in, balance_out, weight_out, amount_out
            )
            gross = self.fee.gross_up(net)
            fee = self.fee.fee_on(gross)

        balances = list(self.balances)
        balances[i] = Amount(balance_in).add(gross).value
        balances[j] = Amount(balance_out).sub(amount_out).value

        result = SwapResult(
            amount_in=Amount(gross),
            amount_out=Amount(amount_out),
            fee=Amount(fee),
            token_in=token_in,
            token_out=self.tokens[j],
            price_after=Price.from_ratio(*spot_price_ratio(balances, self.weights, 0, 1)),
        )
        return result, balances

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Proportional join.

        Mints the largest share amount every deposit can cover and takes only
        what those shares are worth (rounded up); the excess stays with the
        caller.

        Raises:
            InvalidLiquidityChange: If the change does not give one amount per token
            ZeroAmount: If the deposit is too small to mint a share
        """
        require_share_change(change, len(self.tokens), LiquidityAction.ADD)
        supply = S(self.total_shares)
        minted = min(
            (S(amount.value) * supply // S(balance)).value
            for amount, balance in zip(change.amounts, self.balances)
        )
        if minted == 0:
            raise ZeroAmount("Deposit too small to mint liquidity")

        used = [
            (S(minted) * S(balance)).div(supply, Rounding.UP).value for balance in self.balances
        ]
        new_balances = [Amount(b).add(u).value for b, u in zip(self.balances, used)]
        new_supply = Liquidity(self.total_shares).add(minted)

        self.balances = new_balances
        self.total_shares = new_supply.value
        return LiquidityReceipt(
            amounts=tuple(Amount(u) for u in used),
            liquidity=Liquidity(minted),
        )

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Proportional exit; payouts rounded down.

        Raises:
            InvalidLiquidityChange: If the change carries a tick range
            InsufficientLiquidity: If shares exceed the unlocked supply
        """
        shares = shares_to_burn(change, len(self.tokens))
        if shares > self.total_shares - self.locked_shares or shares >= self.total_shares:
            raise InsufficientLiquidity(
                f"Cannot burn {shares} shares; {self.total_shares - self.locked_shares} unlocked"
            )
        supply = S(self.total_shares)
        payouts = [(S(shares) * S(balance) // supply).value for balance in self.balances]
        if any(payout >= balance for payout, balance in zip(payouts, self.balances)):
            raise InsufficientLiquidity("Withdrawal would empty a pool balance")

        self.balances = [balance - payout for balance, payout in zip(self.balances, payouts)]
        self.total_shares -= shares
        return LiquidityReceipt(
            amounts=tuple(Amount(p) for p in payouts),
            liquidity=Liquidity(shares),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def spot_price(self, base: Token, quote: Token) -> Price:
        if base == quote:
            raise SameToken(f"Cannot price {base} in itself")
        base_index = token_index(self.tokens, base)
        quote_index = token_index(self.tokens, quote)
        return Price.from_ratio(
            *spot_price_ratio(self.balances, self.weights, base_index, quote_index)
        )

    def token_pair(self) -> TokenPair:
        return TokenPair(self.tokens[0], self.tokens[1])

    def fee_tier(self) -> FeeTier:
        return self.fee

    def total_liquidity(self) -> Liquidity:
        return Liquidity(self.total_shares)

    def invariant(self) -> Decimal:
        """Weighted geometric mean of the balances."""
        return self.backend.to_decimal(
            calculate_invariant(self.backend, self.weights, self.balances)
        )


__all__ = ["WeightedPool"]
