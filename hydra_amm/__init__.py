"""Hydra AMM - multi-family AMM pool math engine.

The engine logs structured debug events through structlog. Unless the
embedding application has already configured structlog, events below
WARNING are dropped so that importing the library writes nothing to the
console; call structlog.configure() to see them.
"""

import logging

import structlog

from hydra_amm.config import AmmConfig, parse_config, parse_config_json
from hydra_amm.errors import AmmError
from hydra_amm.pools import PoolBox, PoolKind, create_pool
from hydra_amm.settings import DEFAULT_SETTINGS, EngineSettings

if not structlog.is_configured():
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))

__version__ = "0.1.0"
__all__ = [
    "AmmConfig",
    "AmmError",
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "PoolBox",
    "PoolKind",
    "create_pool",
    "parse_config",
    "parse_config_json",
    "__version__",
]
