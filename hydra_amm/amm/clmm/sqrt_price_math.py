"""Price movement and token deltas for a liquidity amount.

All functions work on sqrt prices in Q64.96. Rounding always favors the
pool: amounts owed to the pool round up, amounts paid out round down, and
prices move so that the pool never gives away more than it received.
"""

from __future__ import annotations

from hydra_amm.errors import DivisionByZero, InsufficientLiquidity
from hydra_amm.math.rounding import Rounding, div_rounding, mul_div

from .constants import Q96, RESOLUTION


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding or removing token0.

    Formula: sqrt_next = L * sqrt_p / (L +/- amount * sqrt_p)

    Raises:
        InsufficientLiquidity: If removing amount would exhaust the range
    """
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << RESOLUTION
    product = amount * sqrt_price_x96
    if add:
        denominator = numerator1 + product
    else:
        if numerator1 <= product:
            raise InsufficientLiquidity("Output exceeds token0 available in range")
        denominator = numerator1 - product
    return mul_div(numerator1, sqrt_price_x96, denominator, Rounding.UP)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding or removing token1.

    Formula: sqrt_next = sqrt_p +/- amount / L

    Raises:
        InsufficientLiquidity: If removing amount would exhaust the range
    """
    if add:
        return sqrt_price_x96 + div_rounding(amount << RESOLUTION, liquidity, Rounding.DOWN)
    quotient = div_rounding(amount << RESOLUTION, liquidity, Rounding.UP)
    if sqrt_price_x96 <= quotient:
        raise InsufficientLiquidity("Output exceeds token1 available in range")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    """Next sqrt price given an input amount of token0 or token1.

    Rounds so the price never overshoots the target implied by amount_in.

    Raises:
        DivisionByZero: If price or liquidity is zero
    """
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise DivisionByZero("Price and liquidity must be positive")
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(
            sqrt_price_x96, liquidity, amount_in, add=True
        )
    return get_next_sqrt_price_from_amount1_rounding_down(
        sqrt_price_x96, liquidity, amount_in, add=True
    )


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int, liquidity: int, amount_out: int, zero_for_one: bool
) -> int:
    """Next sqrt price given an output amount of token1 or token0.

    Raises:
        DivisionByZero: If price or liquidity is zero
        InsufficientLiquidity: If the range cannot supply amount_out
    """
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise DivisionByZero("Price and liquidity must be positive")
    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(
            sqrt_price_x96, liquidity, amount_out, add=False
        )
    return get_next_sqrt_price_from_amount0_rounding_up(
        sqrt_price_x96, liquidity, amount_out, add=False
    )


def get_amount0_delta(
    sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool
) -> int:
    """Token0 held by liquidity between two sqrt prices.

    Formula: amount0 = L * (sqrt_b - sqrt_a) / (sqrt_a * sqrt_b)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        raise DivisionByZero("sqrt price must be positive")

    numerator1 = liquidity << RESOLUTION
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96
    rounding = Rounding.UP if round_up else Rounding.DOWN
    return div_rounding(
        mul_div(numerator1, numerator2, sqrt_ratio_b_x96, rounding),
        sqrt_ratio_a_x96,
        rounding,
    )


def get_amount1_delta(
    sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool
) -> int:
    """Token1 held by liquidity between two sqrt prices.

    Formula: amount1 = L * (sqrt_b - sqrt_a)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    rounding = Rounding.UP if round_up else Rounding.DOWN
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96, rounding)


def amounts_for_liquidity(
    sqrt_price_x96: int,
    sqrt_ratio_lower_x96: int,
    sqrt_ratio_upper_x96: int,
    liquidity: int,
    round_up: bool,
) -> tuple[int, int]:
    """Token amounts backing liquidity over a range at the current price.

    Below the range the position is all token0, above it all token1, and
    inside it a mix split at the current price.
    """
    if sqrt_price_x96 <= sqrt_ratio_lower_x96:
        return (
            get_amount0_delta(sqrt_ratio_lower_x96, sqrt_ratio_upper_x96, liquidity, round_up),
            0,
        )
    if sqrt_price_x96 < sqrt_ratio_upper_x96:
        return (
            get_amount0_delta(sqrt_price_x96, sqrt_ratio_upper_x96, liquidity, round_up),
            get_amount1_delta(sqrt_ratio_lower_x96, sqrt_price_x96, liquidity, round_up),
        )
    return (
        0,
        get_amount1_delta(sqrt_ratio_lower_x96, sqrt_ratio_upper_x96, liquidity, round_up),
    )


__all__ = [
    "amounts_for_liquidity",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_next_sqrt_price_from_amount0_rounding_up",
    "get_next_sqrt_price_from_amount1_rounding_down",
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
]
