"""Single swap step within one initialized-tick interval."""

from __future__ import annotations

from dataclasses import dataclass

from hydra_amm.math.rounding import Rounding, mul_div

from .constants import FEE_PIPS_DENOMINATOR
from .sqrt_price_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)


@dataclass(frozen=True)
class SwapStep:
    """Result of swapping within a single price interval.

    Attributes:
        sqrt_price_next_x96: Price reached, never beyond the target
        amount_in: Input consumed, fee excluded
        amount_out: Output produced
        fee_amount: Fee taken on top of amount_in
    """

    sqrt_price_next_x96: int
    amount_in: int
    amount_out: int
    fee_amount: int


def compute_swap_step(
    sqrt_price_current_x96: int,
    sqrt_price_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
    exact_in: bool,
) -> SwapStep:
    """Swap as much of amount_remaining as fits before the target price.

    Direction is implied by the target: a target at or below the current
    price sells token0 (zero_for_one).

    Args:
        sqrt_price_current_x96: Current sqrt price
        sqrt_price_target_x96: Price the step may not cross
        liquidity: Active liquidity over the interval
        amount_remaining: Input left to spend (exact_in) or output left to
            receive (exact_out); non-negative
        fee_pips: Fee in hundredths of a basis point
        exact_in: Whether amount_remaining is an input amount

    Returns:
        SwapStep with the price reached and the amounts exchanged
    """
    zero_for_one = sqrt_price_current_x96 >= sqrt_price_target_x96
    amount_in = 0
    amount_out = 0

    if exact_in:
        remaining_less_fee = mul_div(
            amount_remaining, FEE_PIPS_DENOMINATOR - fee_pips, FEE_PIPS_DENOMINATOR
        )
        if zero_for_one:
            amount_in = get_amount0_delta(
                sqrt_price_target_x96, sqrt_price_current_x96, liquidity, True
            )
        else:
            amount_in = get_amount1_delta(
                sqrt_price_current_x96, sqrt_price_target_x96, liquidity, True
            )
        if remaining_less_fee >= amount_in:
            sqrt_price_next = sqrt_price_target_x96
        else:
            sqrt_price_next = get_next_sqrt_price_from_input(
                sqrt_price_current_x96, liquidity, remaining_less_fee, zero_for_one
            )
    else:
        if zero_for_one:
            amount_out = get_amount1_delta(
                sqrt_price_target_x96, sqrt_price_current_x96, liquidity, False
            )
        else:
            amount_out = get_amount0_delta(
                sqrt_price_current_x96, sqrt_price_target_x96, liquidity, False
            )
        if amount_remaining >= amount_out:
            sqrt_price_next = sqrt_price_target_x96
        else:
            sqrt_price_next = get_next_sqrt_price_from_output(
                sqrt_price_current_x96, liquidity, amount_remaining, zero_for_one
            )

    reached_target = sqrt_price_next == sqrt_price_target_x96

    if zero_for_one:
        if not (reached_target and exact_in):
            amount_in = get_amount0_delta(sqrt_price_next, sqrt_price_current_x96, liquidity, True)
        if not (reached_target and not exact_in):
            amount_out = get_amount1_delta(
                sqrt_price_next, sqrt_price_current_x96, liquidity, False
            )
    else:
        if not (reached_target and exact_in):
            amount_in = get_amount1_delta(sqrt_price_current_x96, sqrt_price_next, liquidity, True)
        if not (reached_target and not exact_in):
            amount_out = get_amount0_delta(
                sqrt_price_current_x96, sqrt_price_next, liquidity, False
            )

    # Output is capped at what was asked for
    if not exact_in and amount_out > amount_remaining:
        amount_out = amount_remaining

    if exact_in and not reached_target:
        # Everything left over after the price move is fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div(
            amount_in, fee_pips, FEE_PIPS_DENOMINATOR - fee_pips, Rounding.UP
        )

    return SwapStep(sqrt_price_next, amount_in, amount_out, fee_amount)


__all__ = ["SwapStep", "compute_swap_step"]
