"""
Remote Cache - HTTP Store Integration Tests

Runs the store against a local HTTP/1.1 server over real sockets.
Covers round trips, pool ceilings, unreachable hosts and timeouts.
"""

import asyncio
import gzip
import json
import time
from typing import Any

import pytest

from remote_cache.errors import ProtocolError, TransportError
from remote_cache.store import HttpStore
from tests.conftest import CacheServer


class TestRoundTrip:
    """set followed by get against a service that stores what it is given."""

    async def test_values_survive_round_trip(
        self, cache_server: CacheServer, sample_cache_data: dict[str, Any]
    ) -> None:
        async with HttpStore(cache_server.endpoint) as store:
            for name, value in sample_cache_data.items():
                await store.set(name.encode(), value)

            for name, value in sample_cache_data.items():
                assert await store.get(name.encode()) == value

    async def test_wire_format(self, cache_server: CacheServer) -> None:
        async with HttpStore(cache_server.endpoint) as store:
            await store.set(b"\xca\xfe", {"a": 1})

        assert cache_server.requests == [("PUT", "/cache/cafe")]
        assert json.loads(gzip.decompress(cache_server.data["/cache/cafe"])) == {"a": 1}

    async def test_unknown_key_is_a_miss(self, cache_server: CacheServer) -> None:
        async with HttpStore(cache_server.endpoint) as store:
            assert await store.get(b"never-written") is None

    async def test_server_error_on_read(self, cache_server: CacheServer) -> None:
        cache_server.get_status = 500

        async with HttpStore(cache_server.endpoint) as store:
            with pytest.raises(ProtocolError) as exc_info:
                await store.get(b"key")

        assert exc_info.value.status_code == 500

    async def test_server_error_on_write_is_ignored(self, cache_server: CacheServer) -> None:
        cache_server.put_status = 503

        async with HttpStore(cache_server.endpoint) as store:
            await store.set(b"key", "value")

        assert "/cache/6b6579" in cache_server.data

    async def test_connections_are_reused(self, cache_server: CacheServer) -> None:
        async with HttpStore(cache_server.endpoint) as store:
            for i in range(10):
                await store.get(bytes([i]))

        assert cache_server.total_connections == 1


class TestPoolCeiling:
    """No more sockets than the ceiling are open per direction."""

    async def test_reads_beyond_ceiling_all_complete(self, cache_server: CacheServer) -> None:
        cache_server.delay = 0.05

        async with HttpStore(cache_server.endpoint) as store:
            results = await asyncio.gather(*(store.get(i.to_bytes(2, "big")) for i in range(100)))

        assert results == [None] * 100
        assert cache_server.max_open_connections <= 64

    async def test_writes_beyond_ceiling_all_complete(self, cache_server: CacheServer) -> None:
        cache_server.delay = 0.05

        async with HttpStore(cache_server.endpoint) as store:
            await asyncio.gather(*(store.set(i.to_bytes(2, "big"), i) for i in range(100)))

        assert len(cache_server.data) == 100
        assert cache_server.max_open_connections <= 64

    async def test_small_ceiling(self, cache_server: CacheServer) -> None:
        cache_server.delay = 0.02

        async with HttpStore(cache_server.endpoint, max_sockets=4) as store:
            await asyncio.gather(*(store.get(bytes([i])) for i in range(20)))

        assert cache_server.max_open_connections <= 4

    async def test_directions_do_not_share_sockets(self, cache_server: CacheServer) -> None:
        async with HttpStore(cache_server.endpoint) as store:
            await store.set(b"k", 1)
            await store.get(b"k")
            await store.set(b"k", 2)
            await store.get(b"k")

        assert cache_server.total_connections == 2


class TestTransportFailures:
    """Unreachable and unresponsive services."""

    async def test_unreachable_host_on_read(self, unreachable_endpoint: str) -> None:
        async with HttpStore(unreachable_endpoint, timeout=1000) as store:
            with pytest.raises(TransportError) as exc_info:
                await store.get(b"key")

        assert exc_info.value.code in {"ECONNREFUSED", "ConnectError"}

    async def test_unreachable_host_on_write(self, unreachable_endpoint: str) -> None:
        async with HttpStore(unreachable_endpoint, timeout=1000) as store:
            with pytest.raises(TransportError):
                await store.set(b"key", "value")

    async def test_unresponsive_service_times_out(self, cache_server: CacheServer) -> None:
        cache_server.hang = True

        async with HttpStore(cache_server.endpoint, timeout=200) as store:
            started = time.monotonic()
            with pytest.raises(TransportError) as exc_info:
                await store.get(b"key")

        assert exc_info.value.code == "ETIMEDOUT"
        assert time.monotonic() - started < 2.0
