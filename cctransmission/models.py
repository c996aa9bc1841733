"""Pydantic models for cctransmission.

Provides validated data models for configuration and for the values the
daemon reports during the handshake.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_SOCKET_PATH = os.path.join("~", ".transmission", "daemon", "socket")


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EncryptionMode(str, Enum):
    """Values accepted by the daemon's ``encryption`` preference."""

    REQUIRED = "required"
    PREFERRED = "preferred"
    PLAINTEXT = "plaintext"


class ServerInfo(BaseModel):
    """Version range and label announced by the daemon during handshake."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(..., description="Lowest protocol version the daemon speaks")
    max: int = Field(..., description="Highest protocol version the daemon speaks")
    label: str = Field("", description="Free-form daemon name and version")

    @field_validator("label", mode="before")
    @classmethod
    def _decode_label(cls, v: Any) -> Any:
        if isinstance(v, bytes):
            return v.decode("utf-8", errors="replace")
        return v

    def supports(self, version: int) -> bool:
        """Return True if ``version`` falls within the daemon's range."""
        return self.min <= version <= self.max


class ClientConfig(BaseModel):
    """Control socket client configuration."""

    socket_path: str = Field(
        default=DEFAULT_SOCKET_PATH,
        description="Path to the daemon's UNIX control socket",
    )
    debug: bool = Field(
        default=False,
        description="Log every raw payload sent to and received from the daemon",
    )
    read_timeout: float | None = Field(
        default=None,
        gt=0.0,
        description="Seconds to wait for a reply before giving up (None blocks indefinitely)",
    )

    @field_validator("socket_path")
    @classmethod
    def _validate_socket_path(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "socket_path must not be empty"
            raise ValueError(msg)
        return v

    def resolved_socket_path(self) -> str:
        """Return the socket path with ``~`` and environment variables expanded."""
        return os.path.expandvars(os.path.expanduser(self.socket_path))


class ObservabilityConfig(BaseModel):
    """Logging configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False, description="Use structured (JSON) logging"
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )


class Config(BaseModel):
    """Top-level cctransmission configuration."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @model_validator(mode="after")
    def _debug_implies_debug_logging(self) -> Config:
        # Wire tap output is emitted at DEBUG
        if self.client.debug and self.observability.log_level != LogLevel.DEBUG:
            self.observability.log_level = LogLevel.DEBUG
        return self
