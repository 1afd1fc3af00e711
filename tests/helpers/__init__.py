"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses and decimals
- factories: Token, order and pool configuration factory functions
"""

from tests.helpers.constants import (
    DAI,
    OUTSIDER,
    TOKEN_DECIMALS,
    USDC,
    USDT,
    WETH,
)
from tests.helpers.factories import (
    clmm_config,
    cp_config,
    dynamic_config,
    hybrid_config,
    make_order,
    make_pair,
    make_token,
    orderbook_config,
    weighted_config,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "OUTSIDER",
    "TOKEN_DECIMALS",
    # Factories
    "make_token",
    "make_pair",
    "make_order",
    "cp_config",
    "clmm_config",
    "hybrid_config",
    "weighted_config",
    "dynamic_config",
    "orderbook_config",
]
