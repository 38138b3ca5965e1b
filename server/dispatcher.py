"""Connection dispatcher for the tcpping server.

Contains:
- Supervisor: Protocol for running sessions concurrently
- ThreadPerConnection: One daemon thread per session, unbounded
- BoundedPool: Fixed number of worker threads, excess sessions queue
- ConnectionDispatcher: Accept loop handing connections to a supervisor
"""

import logging
import socket
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from common.io import enable_nodelay, format_address, wait_readable
from common.protocol import ACCEPT_POLL_S, ListeningSocket
from server.handler import handle_connection

logger = logging.getLogger(__name__)

SessionHandler = Callable[[socket.socket, str], None]


class Supervisor(Protocol):
    """Protocol for running one session per accepted connection."""

    def spawn(self, handler: SessionHandler, sock: socket.socket, peer: str) -> None: ...
    def shutdown(self, wait: bool = False) -> None: ...


def _run_session(handler: SessionHandler, sock: socket.socket, peer: str) -> None:
    """Run a handler, confining any failure to its own session."""
    try:
        handler(sock, peer)
    except Exception:
        logger.exception(f"Session {peer} failed")
    finally:
        # Handlers close their socket; this covers handlers that raised early
        if sock.fileno() >= 0:
            sock.close()


class ThreadPerConnection:
    """Spawn one daemon thread per session. Sessions are never waited on."""

    def __init__(self) -> None:
        self._threads: set[threading.Thread] = set()
        self._lock = threading.Lock()

    def spawn(self, handler: SessionHandler, sock: socket.socket, peer: str) -> None:
        thread = threading.Thread(
            target=self._run, args=(handler, sock, peer), name=f"session-{peer}", daemon=True
        )
        with self._lock:
            self._threads.add(thread)
        thread.start()

    def _run(self, handler: SessionHandler, sock: socket.socket, peer: str) -> None:
        try:
            _run_session(handler, sock, peer)
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    @property
    def active(self) -> int:
        with self._lock:
            return len(self._threads)

    def shutdown(self, wait: bool = False) -> None:
        if not wait:
            return
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join()


class BoundedPool:
    """Run sessions on at most max_sessions worker threads."""

    def __init__(self, max_sessions: int) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_sessions, thread_name_prefix="session")
        self.max_sessions = max_sessions

    def spawn(self, handler: SessionHandler, sock: socket.socket, peer: str) -> None:
        self._executor.submit(_run_session, handler, sock, peer)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)


class ConnectionDispatcher:
    """Accept connections and hand each to the supervisor.

    The dispatcher owns the listening socket. It never waits on a session;
    accept failures are logged and the loop continues.
    """

    def __init__(
        self,
        listener: ListeningSocket,
        supervisor: Supervisor | None = None,
        handler: SessionHandler = handle_connection,
        poll_s: float = ACCEPT_POLL_S,
    ) -> None:
        self.listener = listener
        self.supervisor = supervisor or ThreadPerConnection()
        self.handler = handler
        self.poll_s = poll_s
        self.accepted = 0

    def accept_one(self) -> bool:
        """Accept a single pending connection. Returns False on accept failure."""
        try:
            sock, addr = self.listener.accept()
        except OSError as e:
            logger.error(f"Accept failed: {e}")
            return False

        peer = format_address(addr)
        try:
            enable_nodelay(sock)
        except OSError as e:
            logger.debug(f"Could not set TCP_NODELAY for {peer}: {e}")

        self.accepted += 1
        self.supervisor.spawn(self.handler, sock, peer)
        return True

    def serve_forever(self, stop: threading.Event | None = None) -> None:
        """Run the accept loop until stop is set (or forever if stop is None)."""
        logger.info("Server: waiting for connections...")
        while stop is None or not stop.is_set():
            try:
                if not wait_readable(self.listener, self.poll_s):
                    continue
            except (OSError, ValueError) as e:
                # Listener closed underneath us
                logger.error(f"Listener unavailable: {e}")
                break
            self.accept_one()
        logger.info(f"Server: accept loop stopped ({self.accepted} connections served)")

    def close(self, wait: bool = False) -> None:
        self.listener.close()
        self.supervisor.shutdown(wait=wait)
