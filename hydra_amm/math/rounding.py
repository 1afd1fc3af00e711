"""Rounding directions and full-precision integer helpers."""

from __future__ import annotations

from enum import Enum
from math import isqrt

from hydra_amm.constants import UINT256_MAX
from hydra_amm.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero


class Rounding(Enum):
    """Direction an inexact result is rounded in.

    Pools pick the direction that favors the protocol: amounts paid out are
    rounded DOWN, amounts charged are rounded UP.
    """

    UP = "up"
    DOWN = "down"


def div_rounding(numerator: int, denominator: int, rounding: Rounding = Rounding.DOWN) -> int:
    """Divide two integers, rounding toward +inf (UP) or -inf (DOWN).

    Raises:
        DivisionByZero: If denominator is zero
    """
    if denominator == 0:
        raise DivisionByZero(f"Division by zero: {numerator} / 0")
    quotient, remainder = divmod(numerator, denominator)
    if rounding is Rounding.UP and remainder:
        quotient += 1
    return quotient


def mul_div(
    a: int,
    b: int,
    denominator: int,
    rounding: Rounding = Rounding.DOWN,
    *,
    bound: int = UINT256_MAX,
) -> int:
    """Compute a * b / denominator without intermediate loss of precision.

    The product is kept at full width; only the final result is checked
    against the bound.

    Args:
        a: First factor
        b: Second factor
        denominator: Divisor
        rounding: Rounding direction of the quotient
        bound: Largest acceptable result (default: uint256 max)

    Returns:
        The rounded quotient

    Raises:
        DivisionByZero: If denominator is zero
        ArithmeticOverflow: If the result exceeds bound
    """
    result = div_rounding(a * b, denominator, rounding)
    if result > bound:
        raise ArithmeticOverflow(f"mul_div result {result} exceeds bound")
    return result


def sqrt_rounding(value: int, rounding: Rounding = Rounding.DOWN) -> int:
    """Integer square root rounded in the requested direction.

    Raises:
        ArithmeticUnderflow: If value is negative
    """
    if value < 0:
        raise ArithmeticUnderflow(f"Square root of negative value: {value}")
    root = isqrt(value)
    if rounding is Rounding.UP and root * root < value:
        root += 1
    return root


__all__ = ["Rounding", "div_rounding", "mul_div", "sqrt_rounding"]
