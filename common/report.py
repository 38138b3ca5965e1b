"""Reporting abstractions for tcpping.

Contains:
- Report ABC: Base class for all reports
- ConnectReport: Report after connection establishment
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from common.connection import Connection


class Report(ABC):
    """Abstract base class for console reports."""

    @abstractmethod
    def print(self) -> None:
        """Print the report to stdout."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class ConnectReport(Report):
    """Report after connection establishment.

    When connected=True, connection is required.
    When connected=False, error should be set.
    """

    connected: bool
    connection: Connection | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.connected and self.connection is None:
            raise ValueError("connection is required when connected=True")

    def print(self) -> None:
        """Print the connect report."""
        if self.connected:
            # connection is guaranteed non-None by __post_init__
            assert self.connection is not None
            handshake_ms = self.connection.handshake_us / 1000
            print(
                f"Connected to {self.connection.address} "
                f"(TCP handshake: {handshake_ms:.3f} ms)"
            )
        else:
            print(f"Connect: FAILED ({self.error})")

    def success(self) -> bool:
        """Return True if a connection was established."""
        return self.connected
