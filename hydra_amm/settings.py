"""Tunable engine settings."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from hydra_amm.constants import MINIMUM_LIQUIDITY
from hydra_amm.errors import InvalidConfiguration

ENV_PREFIX = "HYDRA_AMM_"


@dataclass(frozen=True)
class EngineSettings:
    """Centralized configuration for the bounds pools are validated against.

    The amplification and slippage-coefficient ranges are domain-tuning
    choices; they are kept here so deployments can tighten or widen them
    without touching pool code.

    Attributes:
        min_amplification: Lowest accepted stableswap amplification (default: 1)
        max_amplification: Highest accepted stableswap amplification (default: 5000)
        min_slippage_coefficient: Lowest accepted PMM k (default: 0.0001)
        max_slippage_coefficient: Highest accepted PMM k (default: 1)
        max_iterations: Newton iteration bound for the stableswap solver (default: 255)
        search_iterations: Bisection bound for exact-output PMM trades (default: 256)
        minimum_liquidity: Shares locked on a share-based pool's first deposit
    """

    min_amplification: int = 1
    max_amplification: int = 5_000
    min_slippage_coefficient: Decimal = Decimal("0.0001")
    max_slippage_coefficient: Decimal = Decimal("1")
    max_iterations: int = 255
    search_iterations: int = 256
    minimum_liquidity: int = MINIMUM_LIQUIDITY

    def __post_init__(self) -> None:
        """Validate that every range is non-empty and positive."""
        if not 1 <= self.min_amplification <= self.max_amplification:
            raise InvalidConfiguration(
                f"Invalid amplification range [{self.min_amplification}, "
                f"{self.max_amplification}]"
            )
        if not Decimal(0) < self.min_slippage_coefficient <= self.max_slippage_coefficient:
            raise InvalidConfiguration(
                f"Invalid slippage coefficient range [{self.min_slippage_coefficient}, "
                f"{self.max_slippage_coefficient}]"
            )
        if self.max_slippage_coefficient > 1:
            raise InvalidConfiguration("Slippage coefficient cannot exceed 1")
        if self.max_iterations <= 0 or self.search_iterations <= 0:
            raise InvalidConfiguration("Iteration bounds must be positive")
        if self.minimum_liquidity < 0:
            raise InvalidConfiguration("minimum_liquidity cannot be negative")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        """Build settings from HYDRA_AMM_* environment variables.

        Unset variables keep their defaults:
        - HYDRA_AMM_MIN_AMPLIFICATION / HYDRA_AMM_MAX_AMPLIFICATION
        - HYDRA_AMM_MIN_SLIPPAGE_COEFFICIENT / HYDRA_AMM_MAX_SLIPPAGE_COEFFICIENT
        - HYDRA_AMM_MAX_ITERATIONS / HYDRA_AMM_SEARCH_ITERATIONS
        - HYDRA_AMM_MINIMUM_LIQUIDITY

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Validated EngineSettings

        Raises:
            InvalidConfiguration: If a variable does not parse or a range is invalid
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        try:
            return cls(
                min_amplification=int(
                    env.get(f"{ENV_PREFIX}MIN_AMPLIFICATION", defaults.min_amplification)
                ),
                max_amplification=int(
                    env.get(f"{ENV_PREFIX}MAX_AMPLIFICATION", defaults.max_amplification)
                ),
                min_slippage_coefficient=Decimal(
                    env.get(
                        f"{ENV_PREFIX}MIN_SLIPPAGE_COEFFICIENT",
                        str(defaults.min_slippage_coefficient),
                    )
                ),
                max_slippage_coefficient=Decimal(
                    env.get(
                        f"{ENV_PREFIX}MAX_SLIPPAGE_COEFFICIENT",
                        str(defaults.max_slippage_coefficient),
                    )
                ),
                max_iterations=int(env.get(f"{ENV_PREFIX}MAX_ITERATIONS", defaults.max_iterations)),
                search_iterations=int(
                    env.get(f"{ENV_PREFIX}SEARCH_ITERATIONS", defaults.search_iterations)
                ),
                minimum_liquidity=int(
                    env.get(f"{ENV_PREFIX}MINIMUM_LIQUIDITY", defaults.minimum_liquidity)
                ),
            )
        except (ValueError, InvalidOperation) as err:
            raise InvalidConfiguration(f"Invalid {ENV_PREFIX}* setting: {err}") from err


# Default settings instance
DEFAULT_SETTINGS = EngineSettings()
