"""Tests for EngineSettings."""

from decimal import Decimal

import pytest

from hydra_amm.errors import InvalidConfiguration
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings


class TestEngineSettings:
    """Tests for defaults and validation."""

    def test_defaults(self):
        """Defaults match the documented bounds."""
        assert DEFAULT_SETTINGS.min_amplification == 1
        assert DEFAULT_SETTINGS.max_amplification == 5_000
        assert DEFAULT_SETTINGS.min_slippage_coefficient == Decimal("0.0001")
        assert DEFAULT_SETTINGS.max_slippage_coefficient == Decimal(1)
        assert DEFAULT_SETTINGS.max_iterations == 255
        assert DEFAULT_SETTINGS.minimum_liquidity == 1_000

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_amplification": 0},
            {"min_amplification": 10, "max_amplification": 5},
            {"min_slippage_coefficient": Decimal(0)},
            {"max_slippage_coefficient": Decimal(2)},
            {"max_iterations": 0},
            {"search_iterations": 0},
            {"minimum_liquidity": -1},
        ],
    )
    def test_invalid_ranges(self, kwargs):
        """Empty or out-of-range bounds are rejected."""
        with pytest.raises(InvalidConfiguration):
            EngineSettings(**kwargs)


class TestFromEnv:
    """Tests for EngineSettings.from_env."""

    def test_empty_environment_gives_defaults(self):
        """Unset variables keep their defaults."""
        assert EngineSettings.from_env({}) == DEFAULT_SETTINGS

    def test_reads_prefixed_variables(self):
        """HYDRA_AMM_* variables override the defaults."""
        settings = EngineSettings.from_env(
            {
                "HYDRA_AMM_MAX_AMPLIFICATION": "10000",
                "HYDRA_AMM_MIN_SLIPPAGE_COEFFICIENT": "0.01",
                "HYDRA_AMM_MINIMUM_LIQUIDITY": "0",
                "UNRELATED": "x",
            }
        )
        assert settings.max_amplification == 10_000
        assert settings.min_slippage_coefficient == Decimal("0.01")
        assert settings.minimum_liquidity == 0
        assert settings.max_iterations == DEFAULT_SETTINGS.max_iterations

    def test_reads_os_environ(self, monkeypatch):
        """Without a mapping, os.environ is read."""
        monkeypatch.setenv("HYDRA_AMM_SEARCH_ITERATIONS", "64")
        assert EngineSettings.from_env().search_iterations == 64

    @pytest.mark.parametrize(
        "env",
        [
            {"HYDRA_AMM_MAX_ITERATIONS": "many"},
            {"HYDRA_AMM_MAX_SLIPPAGE_COEFFICIENT": "high"},
            {"HYDRA_AMM_MAX_AMPLIFICATION": "0"},
        ],
    )
    def test_invalid_values_raise(self, env):
        """Unparseable or out-of-range values raise InvalidConfiguration."""
        with pytest.raises(InvalidConfiguration):
            EngineSettings.from_env(env)
