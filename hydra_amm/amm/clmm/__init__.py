"""Concentrated liquidity pool package.

This package provides:
- Tick and sqrt-price conversions (tick_math)
- Price movement and token deltas for a liquidity amount (sqrt_price_math)
- Single-interval swap steps (swap_math)
- The pool itself with tick crossing, positions and fee accounting (ClmmPool)
"""

from .constants import MAX_SQRT_RATIO, MIN_SQRT_RATIO, Q96, Q128
from .pool import ClmmPool, PositionInfo, TickInfo
from .sqrt_price_math import (
    amounts_for_liquidity,
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)
from .swap_math import SwapStep, compute_swap_step
from .tick_math import (
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    max_liquidity_per_tick,
    usable_tick_bounds,
)

__all__ = [
    # Constants
    "MAX_SQRT_RATIO",
    "MIN_SQRT_RATIO",
    "Q96",
    "Q128",
    # Pool
    "ClmmPool",
    "PositionInfo",
    "TickInfo",
    # Math
    "SwapStep",
    "amounts_for_liquidity",
    "compute_swap_step",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "max_liquidity_per_tick",
    "usable_tick_bounds",
]
