"""Proactive market maker (PMM) math.

The pool quotes around an oracle price i. Each side has a target balance;
while both balances sit at their targets the marginal price is exactly i,
and it moves away from i as one side runs short. The slippage coefficient
k sets how fast: k = 0 trades flat at i, k = 1 matches x * y = k.

Selling X for Y at price p (p = i when selling base, 1 / i when selling
quote) integrates the curve

    P(V) = p * (1 - k + k * (V0 / V)^2)

between balances. Functions take raw integer amounts and return raw
integer amounts; intermediate values live on a NumericBackend.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TypeVar

from typing_extensions import assert_never

from hydra_amm.math.numeric import NumericBackend
from hydra_amm.math.rounding import Rounding

T = TypeVar("T")


class RState(str, Enum):
    """Which side of the pool, if any, is below its target."""

    BALANCED = "balanced"
    BASE_SHORT = "base_short"
    QUOTE_SHORT = "quote_short"


class _After(Enum):
    SELLER_SHORT = "seller_short"
    BALANCED = "balanced"
    BUYER_SHORT = "buyer_short"


@dataclass(frozen=True)
class PMMState:
    """Balances, targets and R state of a PMM pool."""

    base: int
    quote: int
    base_target: int
    quote_target: int
    r: RState

    @classmethod
    def balanced(cls, base: int, quote: int) -> PMMState:
        return cls(base, quote, base, quote, RState.BALANCED)


# =============================================================================
# Curve primitives
# =============================================================================


def solve_target(backend: NumericBackend[T], balance: int, surplus: int, price: T, k: T) -> int:
    """Target of the short side given the other side's surplus over its target.

    Formula: V0 = V1 * (1 + (sqrt(1 + 4k * p * surplus / V1) - 1) / (2k))

    Rounded down.
    """
    if surplus <= 0:
        return balance
    one = backend.one()
    v1 = backend.from_int(balance)
    four_k = backend.mul(backend.from_int(4), k, Rounding.DOWN)
    value = backend.mul(price, backend.from_int(surplus), Rounding.DOWN)
    scaled = backend.mul(four_k, value, Rounding.DOWN)
    root = backend.sqrt(backend.add(one, backend.div(scaled, v1, Rounding.DOWN)), Rounding.DOWN)
    premium = backend.div(
        backend.sub(root, one), backend.mul(backend.from_int(2), k, Rounding.UP), Rounding.DOWN
    )
    return backend.to_int(backend.mul(v1, backend.add(one, premium), Rounding.DOWN), Rounding.DOWN)


def solve_trade(
    backend: NumericBackend[T], target: int, balance: int, pay: int, price: T, k: T
) -> int:
    """Amount of Y received for paying X while Y is at or below its target.

    Solves the quadratic for the new Y balance V2:

        (1 - k) * V2^2 + b * V2 - k * V0^2 = 0
        b = k * V0^2 / V1 + p * pay - (1 - k) * V1

    V2 is rounded up, so the amount received (V1 - V2) is rounded down.
    For b <= 0 the root is taken as 2k * V0^2 / (sqrt(b^2 + 4(1-k)k * V0^2) + |b|),
    which stays exact at k = 1.
    """
    if pay == 0:
        return 0
    v0 = backend.from_int(target)
    v1 = backend.from_int(balance)
    one_minus_k = backend.complement(k)

    # k * V0^2 / V1 + p * pay, rounded down so V2 rounds up
    part2 = backend.add(
        backend.mul(
            k,
            backend.div(backend.mul(v0, v0, Rounding.DOWN), v1, Rounding.DOWN),
            Rounding.DOWN,
        ),
        backend.mul(price, backend.from_int(pay), Rounding.DOWN),
    )
    weighted_v1 = backend.mul(one_minus_k, v1, Rounding.UP)

    if backend.compare(weighted_v1, part2) >= 0:
        b = backend.sub(weighted_v1, part2)
        discriminant = backend.add(
            backend.mul(b, b, Rounding.UP),
            _constant_term(backend, v0, one_minus_k, k, Rounding.UP),
        )
        root = backend.sqrt(discriminant, Rounding.UP)
        denominator = backend.mul(backend.from_int(2), one_minus_k, Rounding.DOWN)
        v2 = backend.div(backend.add(b, root), denominator, Rounding.UP)
    else:
        b = backend.sub(part2, weighted_v1)
        discriminant = backend.add(
            backend.mul(b, b, Rounding.DOWN),
            _constant_term(backend, v0, one_minus_k, k, Rounding.DOWN),
        )
        root = backend.sqrt(discriminant, Rounding.DOWN)
        numerator = backend.mul(
            backend.mul(backend.from_int(2), k, Rounding.UP),
            backend.mul(v0, v0, Rounding.UP),
            Rounding.UP,
        )
        v2 = backend.div(numerator, backend.add(root, b), Rounding.UP)

    if backend.compare(v2, v1) >= 0:
        return 0
    return backend.to_int(backend.sub(v1, v2), Rounding.DOWN)


def _constant_term(
    backend: NumericBackend[T], v0: T, one_minus_k: T, k: T, rounding: Rounding
) -> T:
    # 4 * (1 - k) * k * V0^2
    factor = backend.mul(backend.mul(backend.from_int(4), one_minus_k, rounding), k, rounding)
    return backend.mul(factor, backend.mul(v0, v0, rounding), rounding)


def integrate(
    backend: NumericBackend[T], target: int, upper: int, lower: int, price: T, k: T
) -> int:
    """Area under the price curve between two X balances below target.

    Formula: p * (V1 - V2) * (1 - k + k * V0^2 / (V1 * V2))

    Rounded down.
    """
    v0 = backend.from_int(target)
    v1 = backend.from_int(upper)
    v2 = backend.from_int(lower)
    fair = backend.mul(price, backend.from_int(upper - lower), Rounding.DOWN)
    ratio = backend.div(
        backend.mul(v0, v0, Rounding.DOWN), backend.mul(v1, v2, Rounding.UP), Rounding.DOWN
    )
    penalty = backend.add(backend.complement(k), backend.mul(k, ratio, Rounding.DOWN))
    return backend.to_int(backend.mul(fair, penalty, Rounding.DOWN), Rounding.DOWN)


# =============================================================================
# State-level operations
# =============================================================================


def adjusted_targets(backend: NumericBackend[T], state: PMMState, price: T, k: T) -> PMMState:
    """Recompute the short side's target from the current balances.

    Args:
        backend: Numeric backend
        state: Current pool state
        price: Oracle price i (quote per base)
        k: Slippage coefficient
    """
    if state.r is RState.BALANCED:
        return state
    if state.r is RState.QUOTE_SHORT:
        surplus = state.base - state.base_target
        return replace(
            state, quote_target=solve_target(backend, state.quote, surplus, price, k)
        )
    if state.r is RState.BASE_SHORT:
        surplus = state.quote - state.quote_target
        inverse = backend.div(backend.one(), price, Rounding.DOWN)
        return replace(
            state, base_target=solve_target(backend, state.base, surplus, inverse, k)
        )
    assert_never(state.r)


def _sell(
    backend: NumericBackend[T],
    pay: int,
    seller: tuple[int, int],
    buyer: tuple[int, int],
    seller_short: bool,
    buyer_short: bool,
    price: T,
    k: T,
) -> tuple[int, _After]:
    """Sell pay of X for Y.

    Args:
        seller: (balance, target) of the token paid in
        buyer: (balance, target) of the token paid out
    """
    x, x0 = seller
    y, y0 = buyer
    if buyer_short:
        return solve_trade(backend, y0, y, pay, price, k), _After.BUYER_SHORT
    if not seller_short:
        return solve_trade(backend, y0, y0, pay, price, k), _After.BUYER_SHORT

    # X is short: first leg pays X back up to its target
    back_pay = max(0, x0 - x)
    back_receive = max(0, y - y0)
    if pay < back_pay:
        receive = integrate(backend, x0, x + pay, x, price, k)
        return min(receive, back_receive), _After.SELLER_SHORT
    if pay == back_pay:
        return back_receive, _After.BALANCED
    rest = solve_trade(backend, y0, y0, pay - back_pay, price, k)
    return back_receive + rest, _After.BUYER_SHORT


def sell_base(
    backend: NumericBackend[T], state: PMMState, pay: int, price: T, k: T
) -> tuple[int, RState]:
    """Quote received for pay base, and the R state afterwards.

    state must already carry adjusted targets.
    """
    receive, after = _sell(
        backend,
        pay,
        (state.base, state.base_target),
        (state.quote, state.quote_target),
        state.r is RState.BASE_SHORT,
        state.r is RState.QUOTE_SHORT,
        price,
        k,
    )
    return receive, _r_state(after, seller=RState.BASE_SHORT, buyer=RState.QUOTE_SHORT)


def sell_quote(
    backend: NumericBackend[T], state: PMMState, pay: int, price: T, k: T
) -> tuple[int, RState]:
    """Base received for pay quote, and the R state afterwards.

    state must already carry adjusted targets.
    """
    inverse = backend.div(backend.one(), price, Rounding.DOWN)
    receive, after = _sell(
        backend,
        pay,
        (state.quote, state.quote_target),
        (state.base, state.base_target),
        state.r is RState.QUOTE_SHORT,
        state.r is RState.BASE_SHORT,
        inverse,
        k,
    )
    return receive, _r_state(after, seller=RState.QUOTE_SHORT, buyer=RState.BASE_SHORT)


def _r_state(after: _After, seller: RState, buyer: RState) -> RState:
    if after is _After.SELLER_SHORT:
        return seller
    if after is _After.BUYER_SHORT:
        return buyer
    if after is _After.BALANCED:
        return RState.BALANCED
    assert_never(after)


def marginal_price(backend: NumericBackend[T], state: PMMState, price: T, k: T) -> T:
    """Marginal price of base in quote.

    BALANCED: i
    BASE_SHORT: i * (1 - k + k * (B0 / B)^2)
    QUOTE_SHORT: i / (1 - k + k * (Q0 / Q)^2)

    state must already carry adjusted targets.
    """
    if state.r is RState.BALANCED:
        return price
    if state.r is RState.BASE_SHORT:
        return backend.mul(
            price, _slippage_factor(backend, state.base_target, state.base, k), Rounding.DOWN
        )
    if state.r is RState.QUOTE_SHORT:
        return backend.div(
            price, _slippage_factor(backend, state.quote_target, state.quote, k), Rounding.DOWN
        )
    assert_never(state.r)


def _slippage_factor(backend: NumericBackend[T], target: int, balance: int, k: T) -> T:
    ratio = backend.from_ratio(target, balance, Rounding.DOWN)
    squared = backend.mul(ratio, ratio, Rounding.DOWN)
    return backend.add(backend.complement(k), backend.mul(k, squared, Rounding.DOWN))


__all__ = [
    "PMMState",
    "RState",
    "adjusted_targets",
    "integrate",
    "marginal_price",
    "sell_base",
    "sell_quote",
    "solve_target",
    "solve_trade",
]
