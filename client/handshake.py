"""Client-side connection establishment for tcpping.

Implements:
  1. Resolve the target into candidate addresses (resolver order kept)
  2. Try each candidate in turn; the first successful connect wins
  3. Record the TCP handshake latency of the winning connect
"""

import logging
import socket

from common.connection import (
    CandidateAddress,
    Connection,
    ConnectError,
    Family,
    ResolutionError,
    Target,
)
from common.io import enable_nodelay, monotonic_us

logger = logging.getLogger(__name__)


def resolve_target(target: Target) -> list[CandidateAddress]:
    """Resolve target into stream socket candidates.

    Raises ResolutionError if lookup fails or yields nothing.
    """
    family_note = "" if target.family is Family.AUTO else f" (IP{target.family.value} only)"
    logger.info(f"Resolving {target.host}:{target.port}{family_note}...")

    try:
        infos = socket.getaddrinfo(
            target.host,
            target.port,
            target.family.socket_family,
            socket.SOCK_STREAM,
        )
    except socket.gaierror as e:
        raise ResolutionError(f"getaddrinfo failed: {e}") from e

    candidates = [
        CandidateAddress(family=family, type=kind, proto=proto, sockaddr=sockaddr)
        for family, kind, proto, _, sockaddr in infos
    ]
    if not candidates:
        raise ResolutionError(f"No addresses found for {target.host}")

    logger.debug(f"Resolved {len(candidates)} candidate(s): {[c.host for c in candidates]}")
    return candidates


def connect_candidate(candidate: CandidateAddress, timeout_s: float) -> Connection:
    """Connect to a single candidate. Raises OSError on failure."""
    sock = socket.socket(candidate.family, candidate.type, candidate.proto)
    try:
        enable_nodelay(sock)
        if timeout_s > 0:
            sock.settimeout(timeout_s)

        start = monotonic_us()
        sock.connect(candidate.sockaddr)
        handshake_us = monotonic_us() - start

        # Reads are gated by readability waits, not socket timeouts
        sock.settimeout(None)
    except (OSError, KeyboardInterrupt):
        sock.close()
        raise

    return Connection(sock=sock, candidate=candidate, handshake_us=handshake_us)


def connect_first(candidates: list[CandidateAddress], timeout_s: float = 0.0) -> Connection:
    """Try candidates sequentially in resolver order.

    Returns the first established Connection.
    Raises ConnectError if every candidate fails.
    """
    last_error: OSError | None = None

    for candidate in candidates:
        logger.info(f"Trying {candidate.host}...")
        try:
            conn = connect_candidate(candidate, timeout_s)
        except OSError as e:
            logger.debug(f"Connect to {candidate.host} failed: {e}")
            last_error = e
            continue

        logger.info(
            f"Connected to [{candidate.host}]:{candidate.port} "
            f"(handshake={conn.handshake_us}us)"
        )
        return conn

    raise ConnectError(f"Could not connect to any address (last error: {last_error})")


def establish(target: Target, timeout_s: float = 0.0) -> Connection:
    """Resolve target and connect to the first reachable candidate.

    Raises ResolutionError or ConnectError.
    """
    candidates = resolve_target(target)
    return connect_first(candidates, timeout_s=timeout_s)
