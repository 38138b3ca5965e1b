"""Common modules for tcpping.

This package contains shared code used by both client and server:
- protocol: Wire constants, timing constants, socket Protocols
- connection: Family, Target, CandidateAddress, Connection
- config: ClientConfig, ServerConfig, ConfigError
- message: FrameBuffer line framing
- encoding: PING/PONG frames and transport errors
- io: Clocks, cancellation, readability wait, socket helpers
- report: Reporting abstractions
"""

from common.config import ClientConfig, ConfigError, ServerConfig
from common.connection import (
    CandidateAddress,
    Connection,
    ConnectError,
    Family,
    ResolutionError,
    Target,
)
from common.encoding import (
    FrameTooLargeError,
    PeerClosedError,
    ReceiveError,
    ReplyTimeoutError,
    SendError,
    TransportError,
)
from common.io import CancelToken
from common.message import FrameBuffer, FrameOverflowError
from common.protocol import (
    CLIENT_BUFFER_SIZE,
    DEFAULT_INTERVAL_S,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_S,
    LISTEN_BACKLOG,
    SERVER_BUFFER_SIZE,
    WAIT_SLICE_S,
)

__all__ = [
    # Protocol
    "CLIENT_BUFFER_SIZE",
    "SERVER_BUFFER_SIZE",
    "DEFAULT_PORT",
    "DEFAULT_INTERVAL_S",
    "DEFAULT_TIMEOUT_S",
    "LISTEN_BACKLOG",
    "WAIT_SLICE_S",
    # Connection
    "Family",
    "Target",
    "CandidateAddress",
    "Connection",
    # Config
    "ClientConfig",
    "ServerConfig",
    # Framing
    "FrameBuffer",
    "CancelToken",
    # Exceptions
    "ConfigError",
    "ConnectError",
    "FrameOverflowError",
    "FrameTooLargeError",
    "PeerClosedError",
    "ReceiveError",
    "ReplyTimeoutError",
    "ResolutionError",
    "SendError",
    "TransportError",
]
