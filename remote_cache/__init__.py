"""
Remote Cache

Client for a networked key-value cache addressed by an HTTP endpoint.
Values are JSON, transferred gzip-compressed over pooled keep-alive connections.
"""

from .config import StoreConfig
from .errors import (
    ConfigurationError,
    DecodeError,
    ErrorCode,
    ProtocolError,
    SerializationError,
    StoreClosedError,
    StoreError,
    TransportError,
    extract_error_code,
)
from .store import HttpStore, StoreInterface, create_store, get_store

__version__ = "0.1.0"

__all__ = [
    "HttpStore",
    "StoreInterface",
    "StoreConfig",
    "create_store",
    "get_store",
    # Errors
    "StoreError",
    "ConfigurationError",
    "ProtocolError",
    "TransportError",
    "DecodeError",
    "SerializationError",
    "StoreClosedError",
    "ErrorCode",
    "extract_error_code",
]
