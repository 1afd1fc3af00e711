"""Capability contracts shared by every pool family."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar, runtime_checkable

from typing_extensions import Self

from hydra_amm.errors import InvalidLiquidityChange, SameToken, TokenNotInPool
from hydra_amm.models.liquidity import LiquidityAction, LiquidityChange, LiquidityReceipt
from hydra_amm.models.swap import SwapResult, SwapSpec
from hydra_amm.models.types import FeeTier, Liquidity, Price, Token, TokenPair
from hydra_amm.settings import EngineSettings

ConfigT_contra = TypeVar("ConfigT_contra", contravariant=True)


@runtime_checkable
class SwapPool(Protocol):
    """Protocol for pools that trade one token for another.

    swap() either fully applies the trade and returns its result, or raises
    and leaves the pool unchanged. quote() runs the same math without
    committing, so quoting twice in a row yields the same result.

    token_out may be omitted on two-token pools, where it is implied by
    token_in.
    """

    def swap(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        """Execute a swap and commit the new pool state.

        Args:
            spec: Exact-in or exact-out amount
            token_in: Token the trader pays
            token_out: Token the trader receives (required on pools with
                more than two tokens)

        Returns:
            SwapResult with amounts, fee and the post-trade spot price

        Raises:
            SameToken: If token_in equals token_out
            TokenNotInPool: If either token is not in the pool
            InsufficientLiquidity: If the pool cannot fill the trade
        """
        ...

    def quote(self, spec: SwapSpec, token_in: Token, token_out: Token | None = None) -> SwapResult:
        """Compute a swap result without changing pool state."""
        ...

    def spot_price(self, base: Token, quote: Token) -> Price:
        """Marginal price of base in units of quote, before fees."""
        ...

    def token_pair(self) -> TokenPair:
        """The pool's (base, quote) pair; the first two tokens on n-token pools."""
        ...

    def fee_tier(self) -> FeeTier: ...

    def total_liquidity(self) -> Liquidity:
        """Outstanding LP shares, or active liquidity on concentrated pools."""
        ...


@runtime_checkable
class LiquidityPool(Protocol):
    """Protocol for pools that accept deposits and withdrawals."""

    def add_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Deposit tokens and mint liquidity.

        Raises:
            InvalidLiquidityChange: If the change does not fit the pool's shape
            ZeroAmount: If the deposit would mint nothing
        """
        ...

    def remove_liquidity(self, change: LiquidityChange) -> LiquidityReceipt:
        """Burn liquidity and withdraw tokens.

        Raises:
            InvalidLiquidityChange: If the change does not fit the pool's shape
            InsufficientLiquidity: If more liquidity is burned than exists
        """
        ...


@runtime_checkable
class FromConfig(Protocol[ConfigT_contra]):
    """Protocol for pools built from a declarative configuration."""

    @classmethod
    def from_config(cls, config: ConfigT_contra, settings: EngineSettings = ...) -> Self: ...


# =============================================================================
# Shared request helpers
# =============================================================================


def resolve_pair_direction(
    pair: TokenPair, token_in: Token, token_out: Token | None
) -> tuple[Token, bool]:
    """Validate a two-token swap request.

    Args:
        pair: The pool's pair
        token_in: Token the trader pays
        token_out: Token the trader receives, or None to infer it

    Returns:
        Tuple of (token_out, base_in) where base_in is True when the
        trader sells the pair's base token

    Raises:
        SameToken: If token_in equals token_out
        TokenNotInPool: If either token is not in the pair
    """
    if token_out is not None and token_in == token_out:
        raise SameToken(f"Cannot swap {token_in} for itself")
    resolved_out = pair.other(token_in)
    if token_out is not None and token_out != resolved_out:
        raise TokenNotInPool(f"Token {token_out} not in pair {pair}")
    return resolved_out, token_in == pair.base


def resolve_indices(
    tokens: Sequence[Token], token_in: Token, token_out: Token | None
) -> tuple[int, int]:
    """Resolve token positions for an n-token swap request.

    Args:
        tokens: The pool's tokens in pool order
        token_in: Token the trader pays
        token_out: Token the trader receives; may be None only when the
            pool holds exactly two tokens

    Returns:
        Tuple of (index_in, index_out)

    Raises:
        SameToken: If token_in equals token_out
        TokenNotInPool: If a token is not in the pool, or token_out is
            missing on a pool with more than two tokens
    """
    if token_out is not None and token_in == token_out:
        raise SameToken(f"Cannot swap {token_in} for itself")
    index_in = token_index(tokens, token_in)
    if token_out is None:
        if len(tokens) != 2:
            raise TokenNotInPool(
                f"token_out is required for pools with {len(tokens)} tokens"
            )
        return index_in, 1 - index_in
    return index_in, token_index(tokens, token_out)


def token_index(tokens: Sequence[Token], token: Token) -> int:
    """Position of token in the pool's token list.

    Raises:
        TokenNotInPool: If token is not in the list
    """
    for i, candidate in enumerate(tokens):
        if candidate == token:
            return i
    raise TokenNotInPool(f"Token {token} not in pool")


def orient_price(pair: TokenPair, base: Token, quote: Token, pair_price: Price) -> Price:
    """Express a pair-oriented price for the requested (base, quote) order.

    Args:
        pair: The pool's pair
        base: Token being priced
        quote: Token the price is denominated in
        pair_price: Price of pair.base in pair.quote

    Raises:
        SameToken: If base equals quote
        TokenNotInPool: If either token is not in the pair
    """
    if base == quote:
        raise SameToken(f"Cannot price {base} in itself")
    if pair.other(base) != quote:
        raise TokenNotInPool(f"Token {quote} not in pair {pair}")
    return pair_price if base == pair.base else pair_price.invert()


def require_share_change(
    change: LiquidityChange, token_count: int, action: LiquidityAction
) -> None:
    """Check that a liquidity change targets a share-based pool.

    Raises:
        InvalidLiquidityChange: If the change carries a tick range, goes the
            wrong direction, or a deposit does not give one amount per pool token
    """
    if change.action is not action:
        raise InvalidLiquidityChange(
            f"Expected a {action.value} request, got {change.action.value}"
        )
    if change.is_ranged:
        raise InvalidLiquidityChange("Share-based pools do not take tick ranges")
    if change.is_add and len(change.amounts) != token_count:
        raise InvalidLiquidityChange(
            f"Expected {token_count} deposit amounts, got {len(change.amounts)}"
        )


def shares_to_burn(change: LiquidityChange, token_count: int) -> int:
    """Share amount of a withdrawal from a share-based pool.

    Raises:
        InvalidLiquidityChange: If the change is not a share withdrawal
    """
    require_share_change(change, token_count, LiquidityAction.REMOVE)
    if change.liquidity is None:
        raise InvalidLiquidityChange("Withdrawal carries no share amount")
    return change.liquidity.value


__all__ = [
    "FromConfig",
    "LiquidityPool",
    "SwapPool",
    "orient_price",
    "require_share_change",
    "resolve_indices",
    "resolve_pair_direction",
    "shares_to_burn",
    "token_index",
]
