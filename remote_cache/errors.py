"""
Remote Cache - Core Error Types

Defines the exception hierarchy for the remote cache client.
All exceptions inherit from StoreError for consistent error handling.

Taxonomy:
- Miss: not an error, a read for an absent key returns None
- ProtocolError: the service answered with an unexpected status
- TransportError: the service could not be reached or the connection failed
- DecodeError: a successful read carried a body that is not gzip'd JSON
"""

import errno
from enum import Enum
from typing import Any

import httpx


class ErrorCode(str, Enum):
    """
    Standard error codes for store operation outcomes.

    Used for structured error reporting by callers that log or count failures.
    """

    MISS = "MISS"
    PROTOCOL = "PROTOCOL"
    TRANSPORT = "TRANSPORT"
    DECODE = "DECODE"
    SERIALIZATION = "SERIALIZATION"
    CONFIGURATION = "CONFIGURATION"
    CLOSED = "CLOSED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class StoreError(Exception):
    """Base exception for all remote cache errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(StoreError):
    """Raised when configuration is invalid or missing."""

    pass


class ProtocolError(StoreError):
    """Raised when a read completes with a status other than 200 or 404."""

    def __init__(self, status_code: int, details: dict[str, Any] | None = None):
        super().__init__(f"HTTP error: {status_code}", details)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class TransportError(StoreError):
    """Raised when the service is unreachable or a connection fails mid-flight."""

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["code"] = self.code
        return data


class DecodeError(StoreError):
    """Raised when a 200 response body cannot be decompressed or parsed as JSON."""

    pass


class SerializationError(StoreError):
    """Raised when a value cannot be serialized to JSON for writing."""

    pass


class StoreClosedError(StoreError):
    """Raised when an operation is issued on a closed store."""

    def __init__(self, endpoint: str):
        super().__init__(f"Store is closed: {endpoint}", {"endpoint": endpoint})


def _find_os_error(exc: BaseException) -> OSError | None:
    """Walk the cause/context chain looking for the underlying socket error."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError) and current.errno is not None:
            return current
        current = current.__cause__ or current.__context__
    return None


def transport_error_code(exc: httpx.TransportError) -> str:
    """
    Derive a short fault code from an httpx transport exception.

    Timeouts map to ETIMEDOUT. Otherwise the errno name of the underlying
    OSError is used when one exists (ECONNREFUSED, ECONNRESET, ...), falling
    back to the httpx exception class name.
    """
    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"

    os_error = _find_os_error(exc)
    if os_error is not None and os_error.errno in errno.errorcode:
        return errno.errorcode[os_error.errno]

    return type(exc).__name__


def classify_transport_error(exc: httpx.TransportError, url: str | None = None) -> TransportError:
    """
    Convert an httpx transport failure into a TransportError.

    Args:
        exc: The transport exception raised by httpx
        url: Request URL, recorded in the error details

    Returns:
        TransportError carrying the message and derived fault code
    """
    code = transport_error_code(exc)
    message = str(exc) or type(exc).__name__
    details: dict[str, Any] = {"exception": type(exc).__name__}
    if url is not None:
        details["url"] = url
    return TransportError(message, code=code, details=details)


def extract_error_code(error: Exception | None) -> ErrorCode:
    """
    Map an operation outcome onto the error taxonomy.

    Args:
        error: Exception raised by a store operation, or None for a miss

    Returns:
        Appropriate ErrorCode for the outcome
    """
    if error is None:
        return ErrorCode.MISS

    if isinstance(error, ProtocolError):
        return ErrorCode.PROTOCOL

    if isinstance(error, TransportError):
        return ErrorCode.TRANSPORT

    if isinstance(error, DecodeError):
        return ErrorCode.DECODE

    if isinstance(error, SerializationError):
        return ErrorCode.SERIALIZATION

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION

    if isinstance(error, StoreClosedError):
        return ErrorCode.CLOSED

    return ErrorCode.INTERNAL_ERROR
