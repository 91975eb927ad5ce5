"""
Remote Cache - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
Store configuration is immutable once a client is constructed.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_COMPRESSION_LEVEL = 9
DEFAULT_MAX_SOCKETS = 64


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreConfig(BaseModel):
    """HTTP store configuration."""

    endpoint: str = Field(description="Base URL of the cache service, e.g. http://cache:8080/metro")
    family: Literal[4, 6] | None = Field(default=None, description="IP version hint for outgoing sockets")
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, description="Request timeout in milliseconds")
    compression_level: int = Field(
        default=DEFAULT_COMPRESSION_LEVEL,
        ge=0,
        le=9,
        description="gzip level used for written values",
    )
    max_sockets: int = Field(default=DEFAULT_MAX_SOCKETS, ge=1, description="Socket ceiling per pool")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Reject endpoints the store would refuse at construction."""
        from ..errors import ConfigurationError
        from ..store.endpoint import parse_endpoint

        try:
            parse_endpoint(v)
        except ConfigurationError as e:
            raise ValueError(e.message) from e
        return v

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    model_config = ConfigDict(frozen=True)


class RemoteCacheConfig(BaseModel):
    """Root configuration for the remote cache client."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    store: StoreConfig | None = Field(default=None, description="HTTP store settings (None when unconfigured)")

    @field_validator("store", mode="before")
    @classmethod
    def drop_unset_store(cls, v: Any) -> Any:
        """Treat a store section without an endpoint as unconfigured."""
        if isinstance(v, dict) and not v.get("endpoint"):
            return None
        return v

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
