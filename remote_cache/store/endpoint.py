"""
Remote Cache - Endpoint Descriptor

Parses the configured endpoint URL into scheme, host, port and base path,
and renders cache keys into request paths.

Only http and https endpoints are accepted. Any other scheme, a missing
host or a missing path is rejected at construction time.
"""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from ..errors import ConfigurationError


class Scheme(str, Enum):
    """Transport scheme for the cache endpoint."""

    HTTP = "http"
    HTTPS = "https"


DEFAULT_PORTS: dict[Scheme, int] = {
    Scheme.HTTP: 80,
    Scheme.HTTPS: 443,
}


@dataclass(frozen=True)
class ResolvedEndpoint:
    """Immutable endpoint derived from the configured URL."""

    scheme: Scheme
    host: str
    port: int
    base_path: str

    @property
    def origin(self) -> str:
        """Scheme, host and port, suitable as an httpx base_url."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme.value}://{host}:{self.port}"

    def key_path(self, key: bytes) -> str:
        """Request path for a key: base path plus the lowercase hex of the key."""
        return f"{self.base_path}/{key_to_hex(key)}"

    def __str__(self) -> str:
        return f"{self.origin}{self.base_path}"


def key_to_hex(key: bytes) -> str:
    """Render a key as lowercase hexadecimal."""
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise TypeError(f"Cache keys must be bytes, got {type(key).__name__}")
    return bytes(key).hex()


def parse_endpoint(endpoint: str) -> ResolvedEndpoint:
    """
    Parse an endpoint URL.

    Args:
        endpoint: URL such as http://cache.internal:8080/metro

    Returns:
        ResolvedEndpoint with the base path stripped of trailing slashes

    Raises:
        ConfigurationError: If the scheme, host, port or path is invalid
    """
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise ConfigurationError("Invalid endpoint: endpoint is required", {"endpoint": endpoint})

    parts = urlsplit(endpoint.strip())
    details = {"endpoint": endpoint}

    try:
        scheme = Scheme(parts.scheme.lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid endpoint: unsupported scheme '{parts.scheme}': {endpoint}",
            details,
        ) from None

    if not parts.hostname or not parts.path:
        raise ConfigurationError(f"Invalid endpoint: {endpoint}", details)

    try:
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid endpoint: bad port: {endpoint}", details) from e

    base_path = parts.path.rstrip("/")
    # A leading "//" would be read as a network-path reference when joined
    if base_path.startswith("//"):
        raise ConfigurationError(f"Invalid endpoint: path must not start with '//': {endpoint}", details)

    return ResolvedEndpoint(
        scheme=scheme,
        host=parts.hostname,
        port=port or DEFAULT_PORTS[scheme],
        base_path=base_path,
    )
