"""
Remote Cache - Store Factory

Creates and tracks named store instances.

Examples:
    from remote_cache.store.factory import create_store, get_store

    # Uses the environment-configured endpoint (REMOTE_CACHE_ENDPOINT)
    store = create_store()

    # Or explicitly supply a StoreConfig (e.g., for tests)
    from remote_cache.config import StoreConfig
    store = create_store(StoreConfig(endpoint="http://localhost:8080/cache"), name="local")
"""

from __future__ import annotations

import logging

from ..config import StoreConfig, get_config
from ..errors import ConfigurationError
from .http import HttpStore
from .interface import StoreInterface

logger = logging.getLogger(__name__)

# Global store instances registry
_store_instances: dict[str, StoreInterface] = {}


def create_store(
    config: StoreConfig | None = None,
    name: str = "default",
) -> StoreInterface:
    """
    Create a store instance based on configuration.

    Args:
        config: Store configuration (uses global config if not provided)
        name: Store instance name (for multiple store instances)

    Returns:
        Configured store instance

    Raises:
        ConfigurationError: If no endpoint is configured or it is invalid
    """
    if name in _store_instances:
        logger.debug("Returning existing store instance: %s", name)
        return _store_instances[name]

    if config is None:
        config = get_config().store

    if config is None:
        raise ConfigurationError(
            "REMOTE_CACHE_ENDPOINT must be set to create a store",
            details={"env": "REMOTE_CACHE_ENDPOINT", "store_name": name},
        )

    store = HttpStore.from_config(config)
    _store_instances[name] = store

    logger.info(
        "Store instance '%s' created successfully",
        name,
        extra={"store_name": name, "endpoint": config.endpoint},
    )
    return store


def get_store(name: str = "default") -> StoreInterface:
    """
    Get an existing store instance by name, creating it from global config if absent.
    """
    if name not in _store_instances:
        logger.debug("Store instance '%s' not found, creating new instance", name)
        return create_store(name=name)

    return _store_instances[name]


async def close_all_stores() -> None:
    """
    Close all store instances and release their connection pools.

    Errors from individual stores are logged and do not stop the others
    from being closed.
    """
    if not _store_instances:
        logger.debug("No store instances to close")
        return

    logger.info("Closing %d store instance(s)...", len(_store_instances))

    for name, store in list(_store_instances.items()):
        try:
            await store.close()
            logger.info("Closed store instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing store instance '%s': %s",
                name,
                e,
                extra={"store_name": name, "error": str(e)},
                exc_info=True,
            )

    _store_instances.clear()


def reset_store_factory() -> None:
    """
    Clear all instance references without closing them.

    Warning: Only use this in testing contexts.
    """
    count = len(_store_instances)
    _store_instances.clear()
    logger.debug("Reset store factory, cleared %d instance reference(s)", count)


def list_store_instances() -> list[str]:
    """List the names of all registered store instances."""
    return list(_store_instances.keys())
