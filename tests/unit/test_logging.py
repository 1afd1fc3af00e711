"""Tests for the package's default logging behaviour."""

import structlog

import hydra_amm
from hydra_amm import create_pool
from hydra_amm.models import LiquidityChange, SwapSpec
from tests.helpers import clmm_config, cp_config


class TestDefaultLogging:
    """Tests for output when the embedding application leaves structlog alone."""

    def test_structlog_is_configured_on_import(self):
        """Importing the package installs a level filter."""
        assert hydra_amm.__name__ == "hydra_amm"
        assert structlog.is_configured()

    def test_pool_lifecycle_is_silent(self, capsys, weth):
        """Debug events from creation, swaps and liquidity changes print nothing."""
        box = create_pool(cp_config())
        box.swap(SwapSpec.exact_in(10_000), weth)
        box.add_liquidity(LiquidityChange.add(1_000, 1_000))
        create_pool(clmm_config()).swap(SwapSpec.exact_in(1_000), weth)
        assert capsys.readouterr().out == ""
