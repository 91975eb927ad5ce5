"""
Remote Cache - Store Interface

Defines the abstract interface that cache stores must implement.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any


class StoreInterface(ABC):
    """
    Abstract base class for cache stores.

    Keys are opaque byte sequences. Values are anything that survives a JSON
    round trip. A read for an absent key returns None rather than raising.
    """

    @abstractmethod
    async def get(self, key: bytes) -> Any | None:
        """
        Retrieve a value from the store.

        Args:
            key: Cache key

        Returns:
            Stored value if present, None on a miss
        """
        pass

    @abstractmethod
    async def set(self, key: bytes, value: Any) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store (must be JSON serializable)
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """
        Clear the store.

        Stores are free to implement this as a no-op; callers must not
        depend on it having effect.
        """
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get store statistics.

        Returns:
            Dictionary with store statistics (hits, misses, ...)
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the store and release resources.

        Should be called during graceful shutdown.
        """
        pass

    async def get_many(self, keys: list[bytes]) -> dict[bytes, Any]:
        """
        Retrieve multiple values from the store.

        Default implementation issues one get() per key concurrently.
        The first failure propagates.

        Args:
            keys: List of cache keys

        Returns:
            Dictionary mapping keys to values (misses are omitted)
        """
        values = await asyncio.gather(*(self.get(key) for key in keys))
        return {key: value for key, value in zip(keys, values, strict=True) if value is not None}
