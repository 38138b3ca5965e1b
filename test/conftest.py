"""pytest configuration and fixtures for tcpping tests.

Provides:
- FakeSocket: Scripted stream socket for handler unit tests
- make_connection: Wrap one end of a socketpair as a client Connection
- Loopback server fixtures (replying and silent) for integration tests
- Markers for unit vs integration tests
"""

import socket
import threading
from collections import deque
from collections.abc import Callable, Generator, Iterable
from pathlib import Path

import pytest

from common.connection import CandidateAddress, Connection
from server.dispatcher import ConnectionDispatcher
from server.listener import bound_port, open_listener


class FakeSocket:
    """Scripted socket for unit testing.

    recv() returns the queued chunks in order, never more than the
    requested size (the rest of a chunk stays queued). Once the chunks run
    out, recv() raises recv_error if set, otherwise returns b"" (EOF).
    Everything passed to sendall() is collected in sent.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        recv_error: OSError | None = None,
        send_error: OSError | None = None,
    ) -> None:
        self._chunks = deque(chunks)
        self.recv_error = recv_error
        self.send_error = send_error
        self.sent = bytearray()
        self.recv_sizes: list[int] = []
        self.closed = False

    def recv(self, size: int, /) -> bytes:
        self.recv_sizes.append(size)
        if not self._chunks:
            if self.recv_error is not None:
                raise self.recv_error
            return b""
        chunk = self._chunks.popleft()
        data, rest = chunk[:size], chunk[size:]
        if rest:
            self._chunks.appendleft(rest)
        return data

    def sendall(self, data: bytes, /) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent += data

    def fileno(self) -> int:
        return -1 if self.closed else 1000

    def close(self) -> None:
        self.closed = True

    @property
    def lines(self) -> list[bytes]:
        """Frames written to the socket, without delimiters."""
        return bytes(self.sent).splitlines()


def make_connection(sock: socket.socket) -> Connection:
    """Wrap a connected socket as a client Connection."""
    candidate = CandidateAddress(
        family=socket.AF_INET,
        type=socket.SOCK_STREAM,
        proto=0,
        sockaddr=("127.0.0.1", 0),
    )
    return Connection(sock=sock, candidate=candidate, handshake_us=0)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (loopback sockets)"
    )


@pytest.fixture
def socket_pair() -> Generator[tuple[socket.socket, socket.socket], None, None]:
    """Connected stream socket pair; both ends are closed after the test."""
    a, b = socket.socketpair()
    try:
        yield a, b
    finally:
        a.close()
        b.close()


ServerFactory = Callable[..., tuple[int, ConnectionDispatcher]]


@pytest.fixture
def loopback_server() -> Generator[ServerFactory, None, None]:
    """Factory starting a dispatcher on an ephemeral port in a thread.

    Returns (port, dispatcher). Keyword arguments go to ConnectionDispatcher.
    All servers are stopped after the test.
    """
    started: list[tuple[threading.Event, threading.Thread, ConnectionDispatcher]] = []

    def start(**kwargs: object) -> tuple[int, ConnectionDispatcher]:
        listener = open_listener(0)
        dispatcher = ConnectionDispatcher(listener, poll_s=0.05, **kwargs)  # type: ignore[arg-type]
        stop = threading.Event()
        thread = threading.Thread(target=dispatcher.serve_forever, args=(stop,), daemon=True)
        thread.start()
        started.append((stop, thread, dispatcher))
        return bound_port(listener), dispatcher

    yield start

    for stop, thread, dispatcher in started:
        stop.set()
        thread.join(timeout=5)
        dispatcher.close()


@pytest.fixture
def silent_server() -> Generator[int, None, None]:
    """Listener that accepts connections but never replies.

    Yields the port. Accepted sockets are held open until the test ends.
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    listener.bind(("127.0.0.1", 0))
    listener.listen(4)
    listener.settimeout(0.1)
    accepted: list[socket.socket] = []
    stop = threading.Event()

    def accept_loop() -> None:
        while not stop.is_set():
            try:
                sock, _ = listener.accept()
            except OSError:
                continue
            accepted.append(sock)

    thread = threading.Thread(target=accept_loop, daemon=True)
    thread.start()
    try:
        yield listener.getsockname()[1]
    finally:
        stop.set()
        thread.join(timeout=5)
        for sock in accepted:
            sock.close()
        listener.close()


@pytest.fixture
def unused_port() -> int:
    """A local port with no listener (bound briefly, then released)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def script_dir() -> Path:
    """Return path to the project root."""
    return Path(__file__).parent.parent


@pytest.fixture
def tcpping_path(script_dir: Path) -> Path:
    """Return path to tcpping.py."""
    return script_dir / "tcpping.py"
