"""Build pools from their declarative configuration."""

from __future__ import annotations

import structlog
from typing_extensions import assert_never

from hydra_amm.config.models import (
    AmmConfig,
    ClmmConfig,
    ConstantProductConfig,
    DynamicConfig,
    HybridConfig,
    OrderBookConfig,
    WeightedConfig,
)
from hydra_amm.errors import AmmError
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

from .pool_box import PoolBox
from .types import (
    AnyPool,
    ClmmPool,
    ConstantProductPool,
    DynamicPool,
    HybridPool,
    OrderBookPool,
    WeightedPool,
)

logger = structlog.get_logger()


def build_pool(config: AmmConfig, settings: EngineSettings = DEFAULT_SETTINGS) -> AnyPool:
    """Build the pool variant matching the config's family.

    Raises:
        InvalidConfiguration: If the config fails validation against settings
    """
    if isinstance(config, ConstantProductConfig):
        return ConstantProductPool.from_config(config, settings)
    if isinstance(config, ClmmConfig):
        return ClmmPool.from_config(config, settings)
    if isinstance(config, HybridConfig):
        return HybridPool.from_config(config, settings)
    if isinstance(config, WeightedConfig):
        return WeightedPool.from_config(config, settings)
    if isinstance(config, DynamicConfig):
        return DynamicPool.from_config(config, settings)
    if isinstance(config, OrderBookConfig):
        return OrderBookPool.from_config(config, settings)
    assert_never(config)


def create_pool(config: AmmConfig, settings: EngineSettings = DEFAULT_SETTINGS) -> PoolBox:
    """Validate a config and wrap the resulting pool in a PoolBox.

    Args:
        config: Any pool configuration
        settings: Bounds to validate against (default: DEFAULT_SETTINGS)

    Returns:
        PoolBox holding the new pool

    Raises:
        InvalidConfiguration: If the config fails validation
        ConvergenceFailure: If a stableswap invariant does not converge
    """
    try:
        return PoolBox(build_pool(config, settings))
    except AmmError as err:
        logger.debug("pool_rejected", pool_type=config.pool_type, error=str(err))
        raise


__all__ = ["build_pool", "create_pool"]
