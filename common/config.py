"""Validated configuration consumed by the client and server runners."""

from dataclasses import dataclass

from common.connection import Target
from common.protocol import (
    DEFAULT_INTERVAL_S,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_S,
    LISTEN_BACKLOG,
    MIN_INTERVAL_S,
)


class ConfigError(Exception):
    """Raised when a configuration value is invalid."""

    pass


def _validate_port(port: int, allow_zero: bool = False) -> None:
    low = 0 if allow_zero else 1
    if not low <= port <= 65535:
        raise ConfigError(f"Port must be between {low} and 65535, got {port}")


@dataclass(frozen=True)
class ClientConfig:
    """Client settings.

    Attributes:
        target: Host, port and family preference.
        count: Number of probes, None for unbounded.
        interval_s: Cadence between probe sends.
        timeout_s: Reply deadline measured from send, 0 waits indefinitely.
    """

    target: Target
    count: int | None = None
    interval_s: float = DEFAULT_INTERVAL_S
    timeout_s: float = DEFAULT_TIMEOUT_S

    def validate(self) -> "ClientConfig":
        """Check every value. Returns self, raises ConfigError."""
        if not self.target.host:
            raise ConfigError("Host must not be empty")
        _validate_port(self.target.port)
        if self.count is not None and self.count < 1:
            raise ConfigError(f"Count must be at least 1, got {self.count}")
        if self.interval_s < MIN_INTERVAL_S:
            raise ConfigError(
                f"Interval must be at least {MIN_INTERVAL_S:g}s, got {self.interval_s:g}s"
            )
        if self.timeout_s < 0:
            raise ConfigError(f"Timeout must not be negative, got {self.timeout_s:g}s")
        return self


@dataclass(frozen=True)
class ServerConfig:
    """Server settings. max_sessions=None serves every connection concurrently."""

    port: int = DEFAULT_PORT
    backlog: int = LISTEN_BACKLOG
    max_sessions: int | None = None

    def validate(self) -> "ServerConfig":
        _validate_port(self.port, allow_zero=True)
        if self.backlog < 1:
            raise ConfigError(f"Backlog must be at least 1, got {self.backlog}")
        if self.max_sessions is not None and self.max_sessions < 1:
            raise ConfigError(f"Max sessions must be at least 1, got {self.max_sessions}")
        return self
