"""Weighted pool package.

This package provides:
- Backend-generic weighted product math (weighted_math)
- The n-token weighted pool with proportional joins and exits (WeightedPool)
"""

from .pool import WeightedPool
from .weighted_math import (
    MAX_IN_RATIO,
    MAX_OUT_RATIO,
    calc_in_given_out,
    calc_out_given_in,
    calculate_invariant,
    spot_price_ratio,
)

__all__ = [
    "MAX_IN_RATIO",
    "MAX_OUT_RATIO",
    "WeightedPool",
    "calc_in_given_out",
    "calc_out_given_in",
    "calculate_invariant",
    "spot_price_ratio",
]
