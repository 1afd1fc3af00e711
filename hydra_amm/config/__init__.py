"""Pool configuration model and parsing."""

from hydra_amm.config.models import (
    AmmConfig,
    ClmmConfig,
    ConstantProductConfig,
    DynamicConfig,
    FallbackConfig,
    HybridConfig,
    OrderBookConfig,
    WeightedConfig,
)
from hydra_amm.config.parsing import parse_config, parse_config_json

__all__ = [
    "AmmConfig",
    "ClmmConfig",
    "ConstantProductConfig",
    "DynamicConfig",
    "FallbackConfig",
    "HybridConfig",
    "OrderBookConfig",
    "WeightedConfig",
    "parse_config",
    "parse_config_json",
]
