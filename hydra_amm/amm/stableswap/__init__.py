"""Stableswap (hybrid) pool package.

This package provides:
- Newton-Raphson invariant and balance solvers (stable_math)
- The n-token amplified pool with imbalance-fee deposits (HybridPool)
"""

from .pool import HybridPool
from .stable_math import (
    AMP_PRECISION,
    calculate_invariant,
    get_token_balance_given_invariant_and_all_other_balances,
    spot_price_ratio,
    stable_calc_in_given_out,
    stable_calc_out_given_in,
)

__all__ = [
    "AMP_PRECISION",
    "HybridPool",
    "calculate_invariant",
    "get_token_balance_given_invariant_and_all_other_balances",
    "spot_price_ratio",
    "stable_calc_in_given_out",
    "stable_calc_out_given_in",
]
