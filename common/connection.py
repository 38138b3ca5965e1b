"""Connection state dataclasses for tcpping.

Contains:
- Family: Address family preference
- Target: Host/port/family to probe
- CandidateAddress: One resolved socket address
- Connection: Established connection owning one socket
- ResolutionError, ConnectError: Establishment failures
"""

import logging
import socket
from dataclasses import dataclass
from enum import Enum

from common.io import format_address

logger = logging.getLogger(__name__)


class Family(Enum):
    """Address family preference for resolution."""

    AUTO = "auto"
    V4 = "v4"
    V6 = "v6"

    @property
    def socket_family(self) -> socket.AddressFamily:
        match self:
            case Family.V4:
                return socket.AF_INET
            case Family.V6:
                return socket.AF_INET6
            case _:
                return socket.AF_UNSPEC


class ResolutionError(Exception):
    """Raised when the target cannot be resolved to any address."""

    pass


class ConnectError(Exception):
    """Raised when no resolved candidate accepts a connection."""

    pass


@dataclass(frozen=True)
class Target:
    """Probe target, immutable for a run."""

    host: str
    port: int
    family: Family = Family.AUTO


@dataclass(frozen=True)
class CandidateAddress:
    """One resolved stream socket address, in resolver order."""

    family: socket.AddressFamily
    type: socket.SocketKind
    proto: int
    sockaddr: tuple

    @property
    def host(self) -> str:
        return self.sockaddr[0]

    @property
    def port(self) -> int:
        return self.sockaddr[1]


@dataclass
class Connection:
    """Established connection state.

    Owns its socket exclusively; close() is idempotent and the connection
    is a context manager so it is released on every exit path.
    """

    sock: socket.socket
    candidate: CandidateAddress
    handshake_us: int

    @property
    def peer(self) -> str:
        """Printable address of the server, as shown in reply lines."""
        return self.candidate.host

    @property
    def address(self) -> str:
        """Server address as [addr]:port."""
        return format_address(self.candidate.sockaddr)

    @property
    def closed(self) -> bool:
        return self.sock.fileno() < 0

    def close(self) -> None:
        if not self.closed:
            self.sock.close()
            logger.debug(f"Closed connection to {self.peer}")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
