"""Weighted pool math.

Core math functions for weighted product pools, written against a
NumericBackend so the same formulas run on fixed point or decimal values.
Amounts and balances are raw integers; weights are basis points.

Every step rounds in the pool's favor: outputs down, inputs up.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from hydra_amm.constants import WEIGHT_TOTAL
from hydra_amm.errors import InsufficientLiquidity
from hydra_amm.math.numeric import NumericBackend
from hydra_amm.math.rounding import Rounding

T = TypeVar("T")

# Trades may move at most 30% of a balance in one swap
MAX_IN_RATIO = (3, 10)
MAX_OUT_RATIO = (3, 10)


def _max_fraction(balance: int, ratio: tuple[int, int]) -> int:
    numerator, denominator = ratio
    return balance * numerator // denominator


def calc_out_given_in(
    backend: NumericBackend[T],
    balance_in: int,
    weight_in: int,
    balance_out: int,
    weight_out: int,
    amount_in: int,
) -> int:
    """Calculate output amount for a given input (sell order).

    Fee should be subtracted from amount_in BEFORE calling this function.

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in))^(weight_in / weight_out))

    Args:
        backend: Numeric backend to evaluate the formula on
        balance_in: Balance of input token
        weight_in: Weight of input token in basis points
        balance_out: Balance of output token
        weight_out: Weight of output token in basis points
        amount_in: Input amount (after fee subtraction)

    Returns:
        Output amount, rounded down

    Raises:
        InsufficientLiquidity: If amount_in > balance_in * 0.3 (30% limit)
    """
    if amount_in > _max_fraction(balance_in, MAX_IN_RATIO):
        raise InsufficientLiquidity(f"Input {amount_in} exceeds 30% of balance {balance_in}")

    b_in = backend.from_int(balance_in)
    b_out = backend.from_int(balance_out)

    # base = balance_in / (balance_in + amount_in) (rounded up)
    denominator = backend.add(b_in, backend.from_int(amount_in))
    base = backend.div(b_in, denominator, Rounding.UP)

    # exponent = weight_in / weight_out (rounded down)
    exponent = backend.div(backend.from_int(weight_in), backend.from_int(weight_out), Rounding.DOWN)

    power = backend.pow(base, exponent, Rounding.UP)
    amount_out = backend.mul(b_out, backend.complement(power), Rounding.DOWN)
    return backend.to_int(amount_out, Rounding.DOWN)


def calc_in_given_out(
    backend: NumericBackend[T],
    balance_in: int,
    weight_in: int,
    balance_out: int,
    weight_out: int,
    amount_out: int,
) -> int:
    """Calculate input amount for a given output (buy order).

    Fee should be added to the result AFTER calling this function.

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1)

    Returns:
        Input amount before fees, rounded up

    Raises:
        InsufficientLiquidity: If amount_out > balance_out * 0.3 (30% limit)
    """
    if amount_out > _max_fraction(balance_out, MAX_OUT_RATIO):
        raise InsufficientLiquidity(
            f"Output {amount_out} exceeds 30% of balance {balance_out}"
        )

    b_in = backend.from_int(balance_in)
    b_out = backend.from_int(balance_out)

    # base = balance_out / (balance_out - amount_out) (rounded up)
    denominator = backend.sub(b_out, backend.from_int(amount_out))
    base = backend.div(b_out, denominator, Rounding.UP)

    # exponent = weight_out / weight_in (rounded UP for buy orders - differs from calc_out!)
    exponent = backend.div(backend.from_int(weight_out), backend.from_int(weight_in), Rounding.UP)

    power = backend.pow(base, exponent, Rounding.UP)
    ratio = backend.sub(power, backend.one())
    amount_in = backend.mul(b_in, ratio, Rounding.UP)
    return backend.to_int(amount_in, Rounding.UP)


def calculate_invariant(
    backend: NumericBackend[T], weights: Sequence[int], balances: Sequence[int]
) -> T:
    """Weighted geometric mean: prod(balance_i ^ (weight_i / WEIGHT_TOTAL)), rounded down."""
    invariant = backend.one()
    for weight, balance in zip(weights, balances):
        normalized = backend.from_ratio(weight, WEIGHT_TOTAL, Rounding.DOWN)
        term = backend.pow(backend.from_int(balance), normalized, Rounding.DOWN)
        invariant = backend.mul(invariant, term, Rounding.DOWN)
    return invariant


def spot_price_ratio(
    balances: Sequence[int], weights: Sequence[int], base_index: int, quote_index: int
) -> tuple[int, int]:
    """Marginal price of base in quote as (numerator, denominator).

    Formula: (balance_quote / weight_quote) / (balance_base / weight_base)
    """
    return (
        balances[quote_index] * weights[base_index],
        balances[base_index] * weights[quote_index],
    )


__all__ = [
    "MAX_IN_RATIO",
    "MAX_OUT_RATIO",
    "calc_in_given_out",
    "calc_out_given_in",
    "calculate_invariant",
    "spot_price_ratio",
]
