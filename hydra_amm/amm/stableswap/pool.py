"""Hybrid (stableswap) pool.

Trades near 1:1 with low slippage while balances stay close, degrading
toward constant-product pricing as they diverge. The amplification
coefficient sets where between the two the curve sits.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from hydra_amm.amm.base import (
    require_share_change,
    resolve_indices,
    shares_to_burn,
    token_index,
)
from hydra_amm.config.models import HybridConfig
from hydra_amm.constants import BPS_DENOMINATOR
from hydra_amm.errors import InsufficientLiquidity, SameToken, ZeroAmount, ZeroOutputAmount
from hydra_amm.models.liquidity import LiquidityAction, LiquidityChange, LiquidityReceipt
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import Amount, FeeTier, Liquidity, Price, Token, TokenPair
from hydra_amm.safe_int import S
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

from .stable_math import (
    AMP_PRECISION,
    calculate_invariant,
    spot_price_ratio,
    stable_calc_in_given_out,
    stable_calc_out_given_in,
)

logger = structlog.get_logger()


@dataclass
class HybridPool:
    """Stableswap pool over two or more tokens with fungible LP shares.

    Attributes:
        tokens: Pool tokens; balances follow the same order
        balances: Raw token balances
        amp: Amplification scaled by AMP_PRECISION
        fee: Fee tier charged on swap input and on imbalanced deposits
        total_shares: Outstanding LP shares, locked shares included
        locked_shares: Shares minted on creation that can never be burned
        max_iterations: Newton-Raphson iteration bound
    """

    tokens: tuple[Token, ...]
    balances: list[int]
    amp: int
    fee: FeeTier
    total_shares: int
    locked_shares: int
    max_iterations: int

    @classmethod
    def from_config(
        cls, config: HybridConfig, settings: EngineSettings = DEFAULT_SETTINGS
    ) -> HybridPool:
        """Build a pool; initial shares equal the starting invariant.

        Raises:
            InvalidConfiguration: If amplification is outside the settings range
            ConvergenceFailure: If the starting invariant does not converge
        """
        config.validate(settings)
        amp = config.amplification * AMP_PRECISION
        balances = list(config.reserves)
        invariant = calculate_invariant(amp, balances, settings.max_iterations)
        pool = cls(
            tokens=config.tokens,
            balances=balances,
            amp=amp,
            fee=config.fee,
            total_shares=invariant,
            locked_shares=min(settings.minimum_liquidity, invariant),
            max_iterations=settings.max_iterations,
        )
        logger.debug(
            "pool_created",
            pool_type=config.pool_type,
            tokens=len(config.tokens),
            amplification=config.amplification,
            invariant=invariant,
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
        index_in, index_out = resolve_indices(self.tokens, token_in, token_out)

        if spec.is_exact_in:
            gross = spec.amount.value
            fee = self.fee.fee_on(gross)
            amount_out = stable_calc_out_given_in(
                self.amp, self.balances, index_in, index_out, gross - fee, self.max_iterations
            )
            if amount_out == 0:
                raise ZeroOutputAmount(f"Input {gross} is too small to produce output")
        else:
            amount_out = spec.amount.value
            net = stable_calc_in_given_out(
                self.amp, self.balances, index_in, index_out, amount_out, self.max_iterations
            )
            gross = self.fee.gross_up(net)
            fee = self.fee.fee_on(gross)

        balances = list(self.balances)
        balances[index_in] = Amount(balances[index_in]).add(gross).value
        balances[index_out] = Amount(balances[index_out]).sub(amount_out).value

        result = SwapResult(
            amount_in=Amount(gross),
            amount_out=Amount(amount_out),
            fee=Amount(fee),
            token_in=token_in,
            token_out=self.tokens[index_out],
            price_after=self._price(balances, 0, 1),
        )
        return result, balances

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Deposit any mix of tokens.

        Deposits that shift the pool away from its current proportions pay
        the swap fee, scaled by n / (4 * (n - 1)), on the imbalanced part.
        The fee stays in the pool.

        Raises:
            InvalidLiquidityChange: If the change does not give one amount per token
            ZeroAmount: If the deposit mints no shares
        """
        require_share_change(change, len(self.tokens), LiquidityAction.ADD)
        n_coins = len(self.tokens)
        deposits = [a.value for a in change.amounts]
        old_balances = self.balances
        new_balances = [
            Amount(old).add(deposit).value for old, deposit in zip(old_balances, deposits)
        ]

        d0 = calculate_invariant(self.amp, old_balances, self.max_iterations)
        d1 = calculate_invariant(self.amp, new_balances, self.max_iterations)
        if d1 <= d0:
            raise ZeroAmount("Deposit does not increase the invariant")

        # Fee rate in bps applied to each token's deviation from the ideal balance
        imbalance_fee_bps = S(self.fee.bps.value) * S(n_coins) // S(4 * (n_coins - 1))
        adjusted = []
        for old, new in zip(old_balances, new_balances):
            ideal = (S(d1) * S(old) // S(d0)).value
            difference = abs(ideal - new)
            charge = (imbalance_fee_bps * S(difference) // S(BPS_DENOMINATOR)).value
            adjusted.append(new - charge)
        d2 = calculate_invariant(self.amp, adjusted, self.max_iterations)

        minted = (S(self.total_shares) * S(d2 - d0) // S(d0)).value if d2 > d0 else 0
        if minted == 0:
            raise ZeroAmount("Deposit too small to mint liquidity")
        new_supply = Liquidity(self.total_shares).add(minted)

        self.balances = new_balances
        self.total_shares = new_supply.value
        return LiquidityReceipt(
            amounts=tuple(Amount(d) for d in deposits),
            liquidity=Liquidity(minted),
        )

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Burn shares for a proportional slice of every balance (rounded down).

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
        return self._price(
            self.balances, token_index(self.tokens, base), token_index(self.tokens, quote)
        )

    def _price(self, balances: list[int], base_index: int, quote_index: int) -> Price:
        invariant = calculate_invariant(self.amp, balances, self.max_iterations)
        numerator, denominator = spot_price_ratio(
            self.amp, balances, invariant, base_index, quote_index
        )
        return Price.from_ratio(numerator, denominator)

    def token_pair(self) -> TokenPair:
        return TokenPair(self.tokens[0], self.tokens[1])

    def fee_tier(self) -> FeeTier:
        return self.fee

    def total_liquidity(self) -> Liquidity:
        return Liquidity(self.total_shares)

    def invariant(self) -> int:
        """Current stableswap invariant D."""
        return calculate_invariant(self.amp, self.balances, self.max_iterations)

    @property
    def amplification(self) -> int:
        """Amplification as configured, without AMP_PRECISION."""
        return self.amp // AMP_PRECISION


__all__ = ["HybridPool"]
