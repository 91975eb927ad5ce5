"""
Remote Cache - HTTP Store

Asynchronous client for a remote key-value cache served over HTTP:
- GET  {base_path}/{hex(key)} returns 200 with a gzip'd JSON body, or 404 on a miss
- PUT  {base_path}/{hex(key)} with a gzip'd JSON body stores a value

Reads and writes use separate keep-alive pools. Failures are never retried
here; retry policy belongs to the caller.

Example:
    async with HttpStore("http://cache.internal:8080/metro") as store:
        await store.set(b"\\x01\\x02", {"artifact": "..."})
        value = await store.get(b"\\x01\\x02")
"""

from __future__ import annotations

import json
import logging
import zlib
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ..config.schemas import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_SOCKETS,
    DEFAULT_TIMEOUT_MS,
    StoreConfig,
)
from ..errors import (
    DecodeError,
    ProtocolError,
    SerializationError,
    StoreClosedError,
    classify_transport_error,
)
from .endpoint import ResolvedEndpoint, key_to_hex, parse_endpoint
from .interface import StoreInterface
from .pools import ConnectionPools

logger = logging.getLogger(__name__)

# wbits offset selecting the gzip container for zlib
GZIP_WBITS = 16 + zlib.MAX_WBITS

# Size of the pieces the serialized payload is fed to the compressor in.
WRITE_CHUNK_SIZE = 64 * 1024


async def _drain(response: httpx.Response) -> None:
    """Consume the response body without processing it."""
    async for _ in response.aiter_raw():
        pass


async def _read_gzip_body(response: httpx.Response) -> bytes:
    """
    Decompress a gzip response body incrementally.

    Raw bytes are read so that a Content-Encoding header from the server does
    not cause a second decode. A body made of several gzip members decodes
    to their concatenation. Transport failures while reading propagate as
    httpx exceptions; corrupt or truncated streams raise DecodeError.
    """
    decompressor = zlib.decompressobj(GZIP_WBITS)
    chunks: list[bytes] = []

    try:
        async for chunk in response.aiter_raw():
            while chunk:
                if decompressor.eof:
                    decompressor = zlib.decompressobj(GZIP_WBITS)
                chunks.append(decompressor.decompress(chunk))
                chunk = decompressor.unused_data if decompressor.eof else b""
        chunks.append(decompressor.flush())
    except zlib.error as e:
        raise DecodeError(f"Failed to decompress response body: {e}", {"url": str(response.url)}) from e

    if not decompressor.eof:
        raise DecodeError("Response body ended before the gzip stream was complete", {"url": str(response.url)})

    return b"".join(chunks)


def _decode_value(data: bytes, url: str) -> Any:
    """Parse the decompressed body as UTF-8 JSON, only once the stream has ended."""
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Failed to parse response body as JSON: {e}", {"url": url}) from e


def _serialize_value(value: Any) -> bytes:
    """Serialize a value to UTF-8 JSON, substituting null for an empty result."""
    try:
        text = json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Value is not JSON serializable: {e}",
            {"value_type": type(value).__name__},
        ) from e
    return (text or "null").encode("utf-8")


async def _compress(payload: bytes, level: int) -> AsyncIterator[bytes]:
    """Stream a payload through a gzip compressor."""
    compressor = zlib.compressobj(level, zlib.DEFLATED, GZIP_WBITS)
    for offset in range(0, len(payload), WRITE_CHUNK_SIZE):
        chunk = compressor.compress(payload[offset : offset + WRITE_CHUNK_SIZE])
        if chunk:
            yield chunk
    yield compressor.flush()


class HttpStore(StoreInterface):
    """
    Remote cache store speaking plain HTTP.

    Notes:
    - Keys are bytes, addressed by their lowercase hex encoding.
    - Values are stored as gzip'd UTF-8 JSON.
    - get() returns None on 404 and raises ProtocolError on any other non-200.
    - set() succeeds once the exchange completes, whatever the status code.
    - clear() is not implemented and does nothing.
    """

    def __init__(
        self,
        endpoint: str,
        family: int | None = None,
        timeout: int = DEFAULT_TIMEOUT_MS,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        max_sockets: int = DEFAULT_MAX_SOCKETS,
        read_transport: httpx.AsyncBaseTransport | None = None,
        write_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the HTTP store.

        Args:
            endpoint: Base URL, e.g. http://cache.internal:8080/metro
            family: 4 or 6 to pin the IP family of outgoing sockets
            timeout: Request timeout in milliseconds
            compression_level: gzip level for written values (0-9)
            max_sockets: Socket ceiling of each pool
            read_transport: Transport override for the read pool
            write_transport: Transport override for the write pool

        Raises:
            ConfigurationError: If the endpoint is invalid
        """
        if family not in (None, 4, 6):
            raise ValueError(f"family must be 4, 6 or None, got {family!r}")
        if timeout <= 0:
            raise ValueError(f"timeout must be a positive number of milliseconds, got {timeout!r}")

        self.endpoint: ResolvedEndpoint = parse_endpoint(endpoint)
        self.family = family
        self.timeout = timeout
        self.compression_level = compression_level

        self._pools = ConnectionPools(
            self.endpoint,
            family=family,
            timeout_ms=timeout,
            max_sockets=max_sockets,
            read_transport=read_transport,
            write_transport=write_transport,
        )
        self._closed = False

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._errors = 0

        logger.info(
            "Created HTTP store for %s",
            self.endpoint,
            extra={"endpoint": str(self.endpoint), "family": family, "timeout_ms": timeout},
        )

    @classmethod
    def from_config(cls, config: StoreConfig, **kwargs: Any) -> HttpStore:
        """Construct a store from a validated StoreConfig."""
        return cls(
            endpoint=config.endpoint,
            family=config.family,
            timeout=config.timeout,
            compression_level=config.compression_level,
            max_sockets=config.max_sockets,
            **kwargs,
        )

    @property
    def pools(self) -> ConnectionPools:
        return self._pools

    async def __aenter__(self) -> HttpStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(str(self.endpoint))

    def _record_failure(self, error: Exception, key_hex: str, method: str) -> None:
        self._errors += 1
        logger.warning(
            "%s %s failed: %s",
            method,
            key_hex,
            error,
            extra={"endpoint": str(self.endpoint), "key": key_hex, "error_type": type(error).__name__},
        )

    # ------------ Core Interface ------------

    async def get(self, key: bytes) -> Any | None:
        """Fetch a value; None when the service reports a miss."""
        self._ensure_open()
        path = self.endpoint.key_path(key)
        key_hex = key_to_hex(key)

        try:
            async with self._pools.read.client.stream("GET", path) as response:
                status = response.status_code

                if status == 404:
                    await _drain(response)
                    self._misses += 1
                    logger.debug("Cache miss for %s", key_hex, extra={"key": key_hex})
                    return None

                if status != 200:
                    await _drain(response)
                    raise ProtocolError(status, {"url": str(response.url)})

                data = await _read_gzip_body(response)
                url = str(response.url)
        except httpx.TransportError as e:
            error = classify_transport_error(e, url=path)
            self._record_failure(error, key_hex, "GET")
            raise error from e
        except (ProtocolError, DecodeError) as e:
            self._record_failure(e, key_hex, "GET")
            raise

        try:
            value = _decode_value(data, url)
        except DecodeError as e:
            self._record_failure(e, key_hex, "GET")
            raise

        self._hits += 1
        return value

    async def set(self, key: bytes, value: Any) -> None:
        """
        Write a value.

        The response body is drained and discarded. Any completed exchange is
        a success regardless of its status code; only transport failures,
        including a fault while reading the response, raise.
        """
        self._ensure_open()
        path = self.endpoint.key_path(key)
        key_hex = key_to_hex(key)
        payload = _serialize_value(value)

        try:
            async with self._pools.write.client.stream(
                "PUT",
                path,
                content=_compress(payload, self.compression_level),
            ) as response:
                await _drain(response)
                status = response.status_code
        except httpx.TransportError as e:
            error = classify_transport_error(e, url=path)
            self._record_failure(error, key_hex, "PUT")
            raise error from e

        self._sets += 1
        if not response.is_success:
            logger.debug(
                "PUT %s completed with status %d",
                key_hex,
                status,
                extra={"key": key_hex, "status_code": status},
            )

    async def clear(self) -> None:
        """Not implemented: performs no network activity."""
        return None

    async def get_stats(self) -> dict[str, Any]:
        """Return operation counters and pool settings."""
        total_reads = self._hits + self._misses
        return {
            "backend": "http",
            "endpoint": str(self.endpoint),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_reads) * 100, 2) if total_reads else 0.0,
            "sets": self._sets,
            "errors": self._errors,
            "max_sockets": self._pools.read.max_sockets,
            "timeout_ms": self.timeout,
            "closed": self._closed,
        }

    async def close(self) -> None:
        """Close both connection pools."""
        if self._closed:
            return
        self._closed = True
        await self._pools.close()
        logger.info("Closed HTTP store for %s", self.endpoint, extra={"endpoint": str(self.endpoint)})
