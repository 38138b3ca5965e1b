"""Clock, wait and socket helpers for tcpping.

Everything platform-dependent used by the protocol and state machine lives
here:
- monotonic_us / wall_clock_us: microsecond clocks
- CancelToken: cooperative cancellation with sliced, cancellable sleep
- wait_readable: readability wait with timeout
- enable_nodelay, format_address: socket options and address formatting
- send_frame, recv_into: socket I/O into a FrameBuffer
"""

import logging
import select
import socket
import time

from common.message import FrameBuffer
from common.protocol import WAIT_SLICE_S, StreamSocket

logger = logging.getLogger(__name__)


def monotonic_us() -> int:
    """Monotonic clock in microseconds, used for all RTT arithmetic."""
    return time.monotonic_ns() // 1000


def wall_clock_us() -> int:
    """Wall clock in microseconds since the epoch, embedded in replies."""
    return time.time_ns() // 1000


class CancelToken:
    """Cancellation flag shared between a signal handler and a loop.

    cancel() only flips a flag, so it is safe to call from a signal
    handler interrupting the loop's own thread. The loop reads cancelled
    or waits via sleep(), which sleeps in slices of at most slice_s so a
    request is honoured within one slice.
    """

    def __init__(self, slice_s: float = WAIT_SLICE_S) -> None:
        self._cancelled = False
        self.slice_s = slice_s

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def sleep(self, duration_s: float) -> bool:
        """Sleep up to duration_s. Returns False if cancelled before it elapsed."""
        deadline = time.monotonic() + duration_s
        while not self._cancelled:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            time.sleep(min(remaining, self.slice_s))
        return False


def wait_readable(sock: StreamSocket, timeout_s: float) -> bool:
    """Wait until sock is readable (data, EOF or error). Returns False on timeout."""
    readable, _, _ = select.select([sock], [], [], max(0.0, timeout_s))
    return bool(readable)


def enable_nodelay(sock: socket.socket) -> None:
    """Disable Nagle's algorithm so small frames are sent immediately."""
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)


def format_address(sockaddr: tuple) -> str:
    """Format a socket address as [host]:port, unwrapping IPv4-mapped IPv6."""
    host, port = sockaddr[0], sockaddr[1]
    if host.startswith("::ffff:") and "." in host:
        host = host[len("::ffff:") :]
    return f"[{host}]:{port}"


def send_frame(sock: StreamSocket, frame: bytes) -> int:
    """Send a complete frame. Returns bytes written."""
    sock.sendall(frame)
    return len(frame)


def recv_into(sock: StreamSocket, buffer: FrameBuffer) -> int:
    """Read at most buffer.space bytes into buffer. Returns 0 on EOF."""
    data = sock.recv(buffer.space)
    if data:
        buffer.append(data)
    return len(data)
