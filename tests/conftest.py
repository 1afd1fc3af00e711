"""Pytest configuration and fixtures."""

import pytest

from hydra_amm.amm import ClmmPool, ConstantProductPool
from hydra_amm.models import Token
from tests.helpers import DAI, OUTSIDER, USDC, USDT, WETH, clmm_config, cp_config, make_token


@pytest.fixture
def weth() -> Token:
    """WETH token (the default base)."""
    return make_token(WETH)


@pytest.fixture
def usdc() -> Token:
    """USDC token (the default quote)."""
    return make_token(USDC)


@pytest.fixture
def usdt() -> Token:
    """USDT token."""
    return make_token(USDT)


@pytest.fixture
def dai() -> Token:
    """DAI token."""
    return make_token(DAI)


@pytest.fixture
def outsider() -> Token:
    """Token that no test pool holds."""
    return make_token(OUTSIDER)


@pytest.fixture
def cp_pool() -> ConstantProductPool:
    """Constant product pool with 1M/1M reserves at 30 bps."""
    return ConstantProductPool.from_config(cp_config())


@pytest.fixture
def clmm_pool() -> ClmmPool:
    """Concentrated pool at tick 0 with one position over [-100, 100)."""
    return ClmmPool.from_config(clmm_config())
