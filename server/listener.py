"""Listening socket setup for the tcpping server."""

import logging
import socket

from common.protocol import LISTEN_BACKLOG

logger = logging.getLogger(__name__)


def _open_dual_stack(port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
    try:
        # Accept IPv4 clients as IPv4-mapped IPv6 addresses
        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("::", port))
    except OSError:
        sock.close()
        raise
    return sock


def _open_ipv4(port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("0.0.0.0", port))
    except OSError:
        sock.close()
        raise
    return sock


def open_listener(port: int, backlog: int = LISTEN_BACKLOG) -> socket.socket:
    """Open a wildcard listener serving both IPv4 and IPv6.

    Falls back to an IPv4-only listener when IPv6 is unavailable.
    Raises OSError if the port cannot be bound.
    """
    if socket.has_ipv6:
        try:
            sock = _open_dual_stack(port)
        except OSError as e:
            logger.warning(f"IPv6 unavailable ({e}), listening on IPv4 only")
            sock = _open_ipv4(port)
    else:
        sock = _open_ipv4(port)

    sock.listen(backlog)
    family = "IPv4/IPv6 dual-stack" if sock.family == socket.AF_INET6 else "IPv4"
    logger.info(f"Listening on port {bound_port(sock)} ({family}, backlog={backlog})")
    return sock


def bound_port(sock: socket.socket) -> int:
    """Return the port a listener is bound to (useful with port 0)."""
    return sock.getsockname()[1]
