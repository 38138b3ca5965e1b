"""PING/PONG message encoding/decoding for tcpping.

Contains:
- encode_request / is_request: client request frame
- encode_reply / parse_reply_timestamp: server reply frame
- Transport error hierarchy for session-ending failures
"""

from common.protocol import DELIMITER, ENCODING, REPLY_PREFIX, REQUEST


class TransportError(Exception):
    """Raised when an active session fails; always ends the session."""

    pass


class SendError(TransportError):
    """Raised when writing a request frame fails."""

    pass


class ReceiveError(TransportError):
    """Raised when reading from the connection fails."""

    pass


class PeerClosedError(TransportError):
    """Raised when the peer closes the connection."""

    pass


class ReplyTimeoutError(TransportError):
    """Raised when no reply arrives before the deadline."""

    pass


class FrameTooLargeError(TransportError):
    """Raised when a reply does not fit the inbound buffer."""

    pass


def encode_request() -> bytes:
    """Encode a PING request frame."""
    return REQUEST + DELIMITER


def is_request(frame: bytes) -> bool:
    """Return True if a decoded frame is exactly the request keyword."""
    return frame == REQUEST


def encode_reply(timestamp_us: int) -> bytes:
    """Encode a PONG reply frame carrying a microsecond timestamp."""
    return REPLY_PREFIX + b" " + str(timestamp_us).encode(ENCODING) + DELIMITER


def parse_reply_timestamp(frame: bytes) -> int | None:
    """Parse the timestamp from a decoded PONG frame.

    Returns None if the frame is not a well-formed reply.
    """
    parts = frame.split(None, 1)
    if len(parts) != 2 or parts[0] != REPLY_PREFIX:
        return None
    try:
        return int(parts[1])
    except ValueError:
        return None
