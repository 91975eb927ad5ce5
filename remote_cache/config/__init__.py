"""
Remote Cache - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config
from .schemas import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_SOCKETS,
    DEFAULT_TIMEOUT_MS,
    Environment,
    LogLevel,
    RemoteCacheConfig,
    StoreConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "RemoteCacheConfig",
    "StoreConfig",
    # Enums
    "Environment",
    "LogLevel",
    # Defaults
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_COMPRESSION_LEVEL",
    "DEFAULT_MAX_SOCKETS",
]
