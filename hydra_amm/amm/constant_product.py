"""Constant product AMM.

Uses the constant product formula: x * y = k. The fee is taken from the
input before pricing and stays in the pool, so k grows with every trade.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import isqrt

import structlog

from hydra_amm.amm.base import (
    orient_price,
    require_share_change,
    resolve_pair_direction,
    shares_to_burn,
)
from hydra_amm.config.models import ConstantProductConfig
from hydra_amm.errors import InsufficientLiquidity, ZeroAmount, ZeroOutputAmount
from hydra_amm.math.rounding import Rounding
from hydra_amm.models.liquidity import LiquidityAction, LiquidityChange, LiquidityReceipt
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import Amount, FeeTier, Liquidity, Price, Token, TokenPair
from hydra_amm.safe_int import S
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

logger = structlog.get_logger()


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Output for a fee-free input, rounded down.

    Formula: amount_out = (in * res_out) / (res_in + in)
    """
    numerator = S(amount_in) * S(reserve_out)
    denominator = S(reserve_in) + S(amount_in)
    return (numerator // denominator).value


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Fee-free input needed for an output, rounded up.

    Formula: amount_in = (res_in * out) / (res_out - out)

    Raises:
        InsufficientLiquidity: If amount_out would drain the reserve
    """
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"Requested output {amount_out} exceeds reserve {reserve_out}"
        )
    numerator = S(reserve_in) * S(amount_out)
    denominator = S(reserve_out) - S(amount_out)
    return numerator.div(denominator, Rounding.UP).value


@dataclass
class _Trade:
    result: SwapResult
    reserve_base: int
    reserve_quote: int


@dataclass
class ConstantProductPool:
    """Two-token x * y = k pool with fungible LP shares.

    Attributes:
        pair: Token pair; reserve_base holds pair.base
        fee: Fee tier charged on input
        reserve_base: Base token reserve
        reserve_quote: Quote token reserve
        total_shares: Outstanding LP shares, locked shares included
        locked_shares: Shares minted on creation that can never be burned
    """

    pair: TokenPair
    fee: FeeTier
    reserve_base: int
    reserve_quote: int
    total_shares: int
    locked_shares: int

    @classmethod
    def from_config(
        cls, config: ConstantProductConfig, settings: EngineSettings = DEFAULT_SETTINGS
    ) -> ConstantProductPool:
        """Build a pool seeded with the configured reserves.

        Initial shares are the geometric mean of the reserves; up to
        settings.minimum_liquidity of them are locked forever.
        """
        config.validate(settings)
        shares = isqrt(config.reserve_base * config.reserve_quote)
        pool = cls(
            pair=config.pair,
            fee=config.fee,
            reserve_base=config.reserve_base,
            reserve_quote=config.reserve_quote,
            total_shares=shares,
            locked_shares=min(settings.minimum_liquidity, shares),
        )
        logger.debug(
            "pool_created",
            pool_type=config.pool_type,
            pair=str(config.pair),
            fee=str(config.fee),
            shares=shares,
        )
        return pool

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        trade = self._trade(spec, token_in, token_out)
        self.reserve_base = trade.reserve_base
        self.reserve_quote = trade.reserve_quote
        return trade.result

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        return self._trade(spec, token_in, token_out).result

    def _trade(self, spec: SwapSpec, token_in: Token, token_out: Token | None) -> _Trade:
        resolved_out, base_in = resolve_pair_direction(self.pair, token_in, token_out)
        if base_in:
            reserve_in, reserve_out = self.reserve_base, self.reserve_quote
        else:
            reserve_in, reserve_out = self.reserve_quote, self.reserve_base

        if spec.is_exact_in:
            gross = spec.amount.value
            fee = self.fee.fee_on(gross)
            amount_out = get_amount_out(gross - fee, reserve_in, reserve_out)
            if amount_out == 0:
                raise ZeroOutputAmount(f"Input {gross} is too small to produce output")
        else:
            amount_out = spec.amount.value
            net = get_amount_in(amount_out, reserve_in, reserve_out)
            gross = self.fee.gross_up(net)
            fee = self.fee.fee_on(gross)

        # Amount arithmetic keeps both reserves inside 128 bits
        new_in = Amount(reserve_in).add(gross).value
        new_out = Amount(reserve_out).sub(amount_out).value
        if base_in:
            new_base, new_quote = new_in, new_out
        else:
            new_base, new_quote = new_out, new_in

        result = SwapResult(
            amount_in=Amount(gross),
            amount_out=Amount(amount_out),
            fee=Amount(fee),
            token_in=token_in,
            token_out=resolved_out,
            price_after=Price.from_ratio(new_quote, new_base),
        )
        return _Trade(result, new_base, new_quote)

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Deposit both tokens at the current ratio.

        Mints min(a * S / Ra, b * S / Rb) shares and takes only the amounts
        those shares are worth (rounded up); any excess of either token is
        left with the caller.

        Raises:
            InvalidLiquidityChange: If the change is not a two-amount deposit
            ZeroAmount: If the deposit is too small to mint a share
        """
        require_share_change(change, 2, LiquidityAction.ADD)
        amount_base, amount_quote = (a.value for a in change.amounts)
        supply = S(self.total_shares)
        minted = min(
            S(amount_base) * supply // S(self.reserve_base),
            S(amount_quote) * supply // S(self.reserve_quote),
        )
        if minted.value == 0:
            raise ZeroAmount("Deposit too small to mint liquidity")

        used_base = (minted * S(self.reserve_base)).div(supply, Rounding.UP)
        used_quote = (minted * S(self.reserve_quote)).div(supply, Rounding.UP)
        new_base = Amount(self.reserve_base).add(used_base.value)
        new_quote = Amount(self.reserve_quote).add(used_quote.value)
        new_supply = Liquidity(self.total_shares).add(minted.value)

        self.reserve_base = new_base.value
        self.reserve_quote = new_quote.value
        self.total_shares = new_supply.value
        return LiquidityReceipt(
            amounts=(Amount(used_base.value), Amount(used_quote.value)),
            liquidity=Liquidity(minted.value),
        )

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Burn shares for a proportional slice of both reserves (rounded down).

        Raises:
            InvalidLiquidityChange: If the change carries a tick range
            InsufficientLiquidity: If shares exceed the unlocked supply
        """
        shares = shares_to_burn(change, 2)
        if shares > self.total_shares - self.locked_shares or shares >= self.total_shares:
            raise InsufficientLiquidity(
                f"Cannot burn {shares} shares; {self.total_shares - self.locked_shares} unlocked"
            )
        supply = S(self.total_shares)
        out_base = (S(shares) * S(self.reserve_base) // supply).value
        out_quote = (S(shares) * S(self.reserve_quote) // supply).value

        self.reserve_base -= out_base
        self.reserve_quote -= out_quote
        self.total_shares -= shares
        return LiquidityReceipt(
            amounts=(Amount(out_base), Amount(out_quote)),
            liquidity=Liquidity(shares),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def spot_price(self, base: Token, quote: Token) -> Price:
        return orient_price(
            self.pair, base, quote, Price.from_ratio(self.reserve_quote, self.reserve_base)
        )

    def token_pair(self) -> TokenPair:
        return self.pair

    def fee_tier(self) -> FeeTier:
        return self.fee

    def total_liquidity(self) -> Liquidity:
        return Liquidity(self.total_shares)

    def invariant(self) -> int:
        """The product k = reserve_base * reserve_quote."""
        return self.reserve_base * self.reserve_quote

    @property
    def reserves(self) -> tuple[int, int]:
        return (self.reserve_base, self.reserve_quote)


__all__ = ["ConstantProductPool", "get_amount_in", "get_amount_out"]
