"""Protocol definitions for tcpping.

Contains:
- Wire constants (request keyword, reply prefix, delimiter)
- StreamSocket Protocol for type checking
- Buffer, timing and listener constants
- Logging configuration
"""

import logging
import os
from typing import Any, Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Progress logging interval for server sessions (configurable via envvar)
LOG_PROGRESS_INTERVAL = int(os.environ.get("TCPPING_LOG_INTERVAL", "100"))

# Wire format: newline-delimited ASCII
DELIMITER = b"\n"
REQUEST = b"PING"
REPLY_PREFIX = b"PONG"
ENCODING = "ascii"


class StreamSocket(Protocol):
    """Protocol for the connected stream socket operations used by the core."""

    def recv(self, bufsize: int, /) -> bytes: ...
    def sendall(self, data: bytes, /) -> None: ...
    def fileno(self) -> int: ...
    def close(self) -> None: ...


class ListeningSocket(Protocol):
    """Protocol for the listener operations used by the dispatcher."""

    def accept(self) -> tuple[Any, Any]: ...
    def fileno(self) -> int: ...
    def close(self) -> None: ...


DEFAULT_PORT = int(os.environ.get("TCPPING_PORT", "50414"))

# Inbound buffer capacities in bytes
CLIENT_BUFFER_SIZE = 256
SERVER_BUFFER_SIZE = 64

# Default timing constants
DEFAULT_INTERVAL_S = 1.0  # Cadence between probes
MIN_INTERVAL_S = 1.0
DEFAULT_TIMEOUT_S = 5.0  # Reply deadline measured from send
WAIT_SLICE_S = 0.2  # Upper bound on any single blocking wait
ACCEPT_POLL_S = 1.0  # Listener readability poll, allows stop requests

# Listener
LISTEN_BACKLOG = 10
