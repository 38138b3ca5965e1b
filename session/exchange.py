"""Probe loop for tcpping.

Drives one request at a time over an established connection:

  SENDING -> AWAITING_REPLY -> MEASURED -> CADENCE_WAIT -> SENDING ...

and TERMINATED when the count is reached, cancellation is requested, or a
transport error occurs. A missed reply ends the session: the loop tracks
the health of one continuous connection rather than sampling independent
probes.
"""

import logging
import time
from collections.abc import Callable
from enum import Enum, auto

from common.config import ClientConfig
from common.connection import Connection
from common.encoding import (
    FrameTooLargeError,
    PeerClosedError,
    ReceiveError,
    ReplyTimeoutError,
    SendError,
    TransportError,
    encode_request,
    parse_reply_timestamp,
)
from common.io import CancelToken, monotonic_us, recv_into, send_frame, wait_readable
from common.message import FrameBuffer, FrameOverflowError
from common.protocol import CLIENT_BUFFER_SIZE, TRACE
from session.result import ProbeRecord, SessionResult

logger = logging.getLogger(__name__)

ProbeCallback = Callable[[ProbeRecord], None]


class ProbeState(Enum):
    """States of the probe loop."""

    SENDING = auto()
    AWAITING_REPLY = auto()
    MEASURED = auto()
    CADENCE_WAIT = auto()
    TERMINATED = auto()


def _enter(state: ProbeState, seq: int) -> ProbeState:
    logger.log(TRACE, f"Client: seq={seq} -> {state.name}")
    return state


def await_reply(
    conn: Connection,
    buffer: FrameBuffer,
    send_us: int,
    timeout_s: float,
    token: CancelToken,
) -> bytes | None:
    """Wait for one complete frame.

    The deadline is timeout_s after send_us (timeout_s=0 waits indefinitely).
    Readability waits are bounded by the token's slice so cancellation is
    honoured within one slice.

    Returns the decoded frame, or None if cancelled while waiting.

    Raises:
        ReplyTimeoutError: Deadline passed without a complete frame.
        PeerClosedError: Peer closed the connection.
        ReceiveError: Reading from the socket failed.
        FrameTooLargeError: Reply did not fit the inbound buffer.
    """
    deadline_us = send_us + int(timeout_s * 1_000_000) if timeout_s > 0 else None

    while True:
        try:
            frame = buffer.next_frame()
        except FrameOverflowError as e:
            raise FrameTooLargeError(str(e)) from e
        if frame is not None:
            buffer.compact()
            return frame

        if token.cancelled:
            return None

        wait_s = token.slice_s
        if deadline_us is not None:
            remaining_s = (deadline_us - monotonic_us()) / 1_000_000
            if remaining_s <= 0:
                raise ReplyTimeoutError(f"No reply within {timeout_s:g}s")
            wait_s = min(wait_s, remaining_s)

        if not wait_readable(conn.sock, wait_s):
            continue

        try:
            received = recv_into(conn.sock, buffer)
        except OSError as e:
            raise ReceiveError(f"Receive failed: {e}") from e
        if received == 0:
            raise PeerClosedError("Connection closed by peer")


def run_probes(
    conn: Connection,
    config: ClientConfig,
    token: CancelToken | None = None,
    on_probe: ProbeCallback | None = None,
    buffer_size: int = CLIENT_BUFFER_SIZE,
) -> SessionResult:
    """Client-side probe loop.

    Sends PING, waits for the reply, measures RTT from local monotonic
    timestamps, then waits out the cadence before the next probe.

    Args:
        conn: Established connection (not closed here).
        config: Count, interval and timeout.
        token: Cancellation token, polled at every suspension point.
        on_probe: Called with each ProbeRecord, including the lost one.
        buffer_size: Inbound buffer capacity.

    Returns:
        SessionResult with accumulated statistics.
    """
    token = token or CancelToken()
    result = SessionResult()
    stats = result.stats
    buffer = FrameBuffer(buffer_size)
    start = time.monotonic()
    seq = 0

    def emit(record: ProbeRecord) -> None:
        result.probes.append(record)
        if on_probe is not None:
            on_probe(record)

    count_note = "unbounded" if config.count is None else str(config.count)
    logger.info(
        f"Client: starting probes to {conn.peer} (count={count_note}, "
        f"interval={config.interval_s:g}s, timeout={config.timeout_s:g}s)"
    )

    while True:
        if token.cancelled:
            result.cancelled = True
            break
        if config.count is not None and seq >= config.count:
            break

        seq += 1
        _enter(ProbeState.SENDING, seq)
        send_us = monotonic_us()
        try:
            send_frame(conn.sock, encode_request())
        except OSError as e:
            result.error = SendError(f"Send failed: {e}")
            logger.error(f"Client: send failed on seq={seq}: {e}")
            break

        _enter(ProbeState.AWAITING_REPLY, seq)
        try:
            frame = await_reply(conn, buffer, send_us, config.timeout_s, token)
        except TransportError as e:
            stats.record_loss()
            result.error = e
            logger.warning(f"Client: seq={seq} lost: {e}")
            emit(ProbeRecord(seq=seq, send_us=send_us, error=e))
            break

        if frame is None:
            result.cancelled = True
            break

        recv_us = monotonic_us()
        _enter(ProbeState.MEASURED, seq)
        rtt_us = recv_us - send_us
        stats.record(rtt_us)

        server_ts = parse_reply_timestamp(frame)
        if server_ts is None:
            logger.debug(f"Client: seq={seq} reply has no timestamp: {frame!r}")
        emit(
            ProbeRecord(
                seq=seq,
                send_us=send_us,
                recv_us=recv_us,
                rtt_us=rtt_us,
                server_timestamp_us=server_ts,
            )
        )

        if config.count is not None and seq >= config.count:
            break

        # Fixed cadence: subtract the time already spent on this probe
        _enter(ProbeState.CADENCE_WAIT, seq)
        elapsed_s = (monotonic_us() - send_us) / 1_000_000
        if not token.sleep(max(0.0, config.interval_s - elapsed_s)):
            result.cancelled = True
            break

    _enter(ProbeState.TERMINATED, seq)
    result.elapsed_s = time.monotonic() - start
    logger.info(
        f"Client: session ended ({stats.transmitted} sent, {stats.count} received, "
        f"{stats.lost} lost)"
    )
    return result
