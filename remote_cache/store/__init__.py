"""
Remote Cache - Store Module

Usage:
    from remote_cache.store import HttpStore

    async with HttpStore("http://cache.internal:8080/metro") as store:
        await store.set(key, value)
        value = await store.get(key)
"""

from .endpoint import ResolvedEndpoint, Scheme, key_to_hex, parse_endpoint
from .factory import (
    close_all_stores,
    create_store,
    get_store,
    list_store_instances,
    reset_store_factory,
)
from .http import HttpStore
from .interface import StoreInterface
from .pools import ConnectionPool, ConnectionPools

__all__ = [
    # Factory functions
    "create_store",
    "get_store",
    "close_all_stores",
    "list_store_instances",
    "reset_store_factory",
    # Interface and implementation
    "StoreInterface",
    "HttpStore",
    # Building blocks
    "ConnectionPool",
    "ConnectionPools",
    "ResolvedEndpoint",
    "Scheme",
    "key_to_hex",
    "parse_endpoint",
]
