"""Dynamic (proactive market maker) pool package.

This package provides:
- Oracle-anchored curve math with base/quote targets (pmm_math)
- The two-token PMM pool with exact-output search (DynamicPool)
"""

from .pmm_math import PMMState, RState, marginal_price, solve_target, solve_trade
from .pool import DynamicPool

__all__ = [
    "DynamicPool",
    "PMMState",
    "RState",
    "marginal_price",
    "solve_target",
    "solve_trade",
]
