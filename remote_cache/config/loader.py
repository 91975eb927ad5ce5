"""
Remote Cache - Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for applications that wire the
store from their environment. The store itself never reads the environment.
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_SOCKETS,
    DEFAULT_TIMEOUT_MS,
    RemoteCacheConfig,
)

logger = logging.getLogger(__name__)

_config_instance: RemoteCacheConfig | None = None


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer, got '{raw}'",
            details={"env": name, "value": raw},
        ) from e


def _int_or_default(name: str, default: int) -> int:
    value = _optional_int(name)
    return default if value is None else value


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> RemoteCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated RemoteCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    if env_path.exists():
        logger.info("Loading environment from %s", env_path)
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                "Failed to load .env file from %s: %s",
                env_path,
                e,
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    config_dict: dict[str, Any] = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "store": {
            "endpoint": os.getenv("REMOTE_CACHE_ENDPOINT"),
            "family": _optional_int("REMOTE_CACHE_FAMILY"),
            "timeout": _int_or_default("REMOTE_CACHE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            "compression_level": _int_or_default("REMOTE_CACHE_COMPRESSION_LEVEL", DEFAULT_COMPRESSION_LEVEL),
            "max_sockets": _int_or_default("REMOTE_CACHE_MAX_SOCKETS", DEFAULT_MAX_SOCKETS),
        },
    }

    try:
        config = RemoteCacheConfig(**config_dict)
    except ValidationError as e:
        logger.error("Configuration validation failed: %s", e, extra={"errors": e.errors()})
        raise ConfigurationError(
            "Invalid configuration",
            details={"errors": [str(err) for err in e.errors()]},
        ) from e

    _config_instance = config
    logger.debug(
        "Configuration loaded",
        extra={"environment": config.environment, "store_configured": config.store is not None},
    )
    return config


def get_config() -> RemoteCacheConfig:
    """Get the current configuration, loading it on first use."""
    if _config_instance is None:
        return load_config()
    return _config_instance


def reload_config(env_file: str | None = None) -> RemoteCacheConfig:
    """Force a reload of configuration from the environment."""
    return load_config(env_file=env_file, reload=True)
