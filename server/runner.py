"""Server runner for tcpping.

Contains run_server() which opens the dual-stack listener and runs the
accept loop until SIGINT/SIGTERM.
"""

import logging
import signal
import threading
from types import FrameType

from common.config import ConfigError, ServerConfig
from server.dispatcher import BoundedPool, ConnectionDispatcher, Supervisor, ThreadPerConnection
from server.listener import bound_port, open_listener

logger = logging.getLogger(__name__)


def make_supervisor(config: ServerConfig) -> Supervisor:
    """Choose the session supervisor for a configuration."""
    if config.max_sessions is None:
        return ThreadPerConnection()
    return BoundedPool(config.max_sessions)


def run_server(
    config: ServerConfig,
    stop: threading.Event | None = None,
    handle_signals: bool = True,
) -> int:
    """Run server until stopped. Returns 0 unless the listener cannot be opened.

    The server:
    - Listens on one dual-stack socket
    - Serves each connection in its own session
    - Handles SIGINT/SIGTERM by stopping the accept loop
    """
    try:
        config.validate()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    stop = stop or threading.Event()

    def handle_signal(_sig: int, _frame: FrameType | None) -> None:
        logger.info("Signal received - shutting down")
        stop.set()

    if handle_signals:
        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

    try:
        listener = open_listener(config.port, backlog=config.backlog)
    except OSError as e:
        logger.error(f"Failed to open listener on port {config.port}: {e}")
        return 1

    print(f"TCP ping server listening on port {bound_port(listener)}", flush=True)
    dispatcher = ConnectionDispatcher(listener, supervisor=make_supervisor(config))
    try:
        dispatcher.serve_forever(stop)
    finally:
        dispatcher.close()

    logger.info("Server shutdown complete")
    return 0
