"""
Remote Cache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests,
including a minimal keep-alive HTTP/1.1 cache server bound to 127.0.0.1.
"""

import asyncio
import os
import socket
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


def unused_port() -> int:
    """Find a local TCP port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])
    finally:
        sock.close()


class CacheServer:
    """
    In-process cache service speaking just enough HTTP/1.1 for the store.

    GET returns the stored body (200) or 404, PUT stores the request body.
    Tracks how many client sockets are open at once.
    """

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.requests: list[tuple[str, str]] = []
        self.get_status: int | None = None
        self.put_status = 200
        self.delay = 0.0
        self.hang = False
        self.open_connections = 0
        self.max_open_connections = 0
        self.total_connections = 0
        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: set[asyncio.StreamWriter] = set()

    @property
    def endpoint(self) -> str:
        return f"http://127.0.0.1:{self.port}/cache"

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        for writer in list(self._writers):
            writer.close()
        await self._server.wait_closed()

    async def _read_body(self, reader: asyncio.StreamReader, headers: dict[str, str]) -> bytes:
        if headers.get("transfer-encoding", "").lower() == "chunked":
            body = bytearray()
            while True:
                size = int((await reader.readline()).split(b";")[0].strip(), 16)
                if size == 0:
                    while (await reader.readline()) not in (b"\r\n", b"\n", b""):
                        pass
                    return bytes(body)
                body += await reader.readexactly(size)
                await reader.readexactly(2)
        length = int(headers.get("content-length", "0"))
        return await reader.readexactly(length) if length else b""

    async def _respond(self, writer: asyncio.StreamWriter, status: int, body: bytes = b"") -> None:
        head = (
            f"HTTP/1.1 {status} Status\r\n"
            f"Content-Length: {len(body)}\r\n"
            "Connection: keep-alive\r\n"
            "\r\n"
        )
        writer.write(head.encode("latin-1") + body)
        await writer.drain()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.add(writer)
        self.open_connections += 1
        self.total_connections += 1
        self.max_open_connections = max(self.max_open_connections, self.open_connections)
        try:
            while True:
                request_line = await reader.readline()
                if not request_line:
                    break
                method, path, _ = request_line.decode("latin-1").split(" ", 2)

                headers: dict[str, str] = {}
                while True:
                    line = await reader.readline()
                    if line in (b"\r\n", b"\n", b""):
                        break
                    name, _, value = line.decode("latin-1").partition(":")
                    headers[name.strip().lower()] = value.strip()

                body = await self._read_body(reader, headers)
                self.requests.append((method, path))

                if self.hang:
                    await reader.read()
                    break
                if self.delay:
                    await asyncio.sleep(self.delay)

                if method == "GET":
                    if self.get_status is not None:
                        await self._respond(writer, self.get_status, b"error")
                    elif path in self.data:
                        await self._respond(writer, 200, self.data[path])
                    else:
                        await self._respond(writer, 404, b"not found")
                elif method == "PUT":
                    self.data[path] = body
                    await self._respond(writer, self.put_status, b"stored")
                else:
                    await self._respond(writer, 405)
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            self.open_connections -= 1
            self._writers.discard(writer)
            writer.close()


@pytest_asyncio.fixture
async def cache_server() -> AsyncGenerator[CacheServer, None]:
    """Start a local cache server for the duration of a test."""
    server = CacheServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def unreachable_endpoint() -> str:
    """Endpoint on a local port with no listener."""
    return f"http://127.0.0.1:{unused_port()}/cache"


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample values for round-trip testing."""
    return {
        "simple_string": "hello",
        "unicode_string": "héllo wörld ✓",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_store_factory() -> Generator[None, None, None]:
    """Reset store factory after each test to prevent state leakage."""
    yield
    from remote_cache.store.factory import reset_store_factory

    reset_store_factory()
