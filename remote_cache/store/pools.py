"""
Remote Cache - Connection Pool Manager

Each store owns two independent keep-alive pools: one for read (GET) traffic
and one for write (PUT) traffic. A pool is an httpx.AsyncClient over its own
transport, bounded to a fixed socket ceiling. Pools are never shared across
directions and are never resized.
"""

import logging
from typing import Any, Literal

import httpx

from ..config.schemas import DEFAULT_MAX_SOCKETS, DEFAULT_TIMEOUT_MS
from .endpoint import ResolvedEndpoint

logger = logging.getLogger(__name__)

# Source address that pins outgoing sockets to an IP family.
LOCAL_ADDRESSES: dict[int, str] = {
    4: "0.0.0.0",
    6: "::",
}


def build_limits(max_sockets: int, timeout_ms: int) -> httpx.Limits:
    """Socket ceiling and keep-alive settings shared by both pools."""
    return httpx.Limits(
        max_connections=max_sockets,
        max_keepalive_connections=max_sockets,
        keepalive_expiry=timeout_ms / 1000,
    )


def build_timeout(timeout_ms: int) -> httpx.Timeout:
    """Per-request timeout; waiting for a free pooled socket is unbounded."""
    return httpx.Timeout(timeout_ms / 1000, pool=None)


class ConnectionPool:
    """A bounded keep-alive pool for one traffic direction."""

    def __init__(
        self,
        name: Literal["read", "write"],
        endpoint: ResolvedEndpoint,
        family: int | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_sockets: int = DEFAULT_MAX_SOCKETS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize a pool.

        Args:
            name: Direction served by this pool ("read" or "write")
            endpoint: Resolved endpoint the pool connects to
            family: 4 or 6 to pin the IP family, None for either
            timeout_ms: Request timeout, also used as keep-alive expiry
            max_sockets: Ceiling for concurrent and idle sockets
            transport: Replacement transport (tests inject httpx.MockTransport)
        """
        self.name = name
        self.max_sockets = max_sockets
        self.limits = build_limits(max_sockets, timeout_ms)

        if transport is None:
            transport_kwargs: dict[str, Any] = {"limits": self.limits, "retries": 0}
            if family is not None:
                transport_kwargs["local_address"] = LOCAL_ADDRESSES[family]
            transport = httpx.AsyncHTTPTransport(**transport_kwargs)

        self.client = httpx.AsyncClient(
            base_url=endpoint.origin,
            transport=transport,
            timeout=build_timeout(timeout_ms),
            trust_env=False,
        )

    @property
    def is_closed(self) -> bool:
        return self.client.is_closed

    async def close(self) -> None:
        """Close the pool and every socket it holds."""
        if not self.client.is_closed:
            await self.client.aclose()
            logger.debug("Closed %s pool", self.name, extra={"pool": self.name})


class ConnectionPools:
    """The read and write pools of a single store."""

    def __init__(
        self,
        endpoint: ResolvedEndpoint,
        family: int | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_sockets: int = DEFAULT_MAX_SOCKETS,
        read_transport: httpx.AsyncBaseTransport | None = None,
        write_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.read = ConnectionPool("read", endpoint, family, timeout_ms, max_sockets, read_transport)
        self.write = ConnectionPool("write", endpoint, family, timeout_ms, max_sockets, write_transport)

    async def close(self) -> None:
        """Close both pools; the write pool is closed even if the read pool fails to."""
        try:
            await self.read.close()
        finally:
            await self.write.close()
