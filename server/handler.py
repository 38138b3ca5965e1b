"""Per-connection session handler for the tcpping server.

Reads PING frames and answers each with PONG and the server's current
microsecond timestamp. Every complete frame in a read is answered before
the next read, so pipelined requests are supported. Anything other than
the request keyword is ignored.
"""

import logging
from collections.abc import Callable
from contextlib import closing

from common.encoding import encode_reply, is_request
from common.io import recv_into, send_frame, wall_clock_us
from common.message import FrameBuffer, FrameOverflowError
from common.protocol import LOG_PROGRESS_INTERVAL, SERVER_BUFFER_SIZE, TRACE, StreamSocket

logger = logging.getLogger(__name__)


def handle_connection(
    sock: StreamSocket,
    peer: str,
    capacity: int = SERVER_BUFFER_SIZE,
    clock: Callable[[], int] = wall_clock_us,
) -> None:
    """Serve one client until EOF or error, then close the socket.

    Args:
        sock: Accepted connection, owned by this handler.
        peer: Printable client address.
        capacity: Inbound buffer capacity.
        clock: Timestamp source for replies, in microseconds.
    """
    with closing(sock):
        logger.info(f"Client connected: {peer}")
        buffer = FrameBuffer(capacity)
        replies = 0

        while True:
            try:
                received = recv_into(sock, buffer)
            except OSError as e:
                logger.warning(f"Receive error from {peer}: {e}")
                break
            if received == 0:
                logger.info(f"Client {peer} disconnected ({replies} replies)")
                break

            try:
                for frame in buffer.frames():
                    if not is_request(frame):
                        logger.debug(f"Ignoring frame from {peer}: {frame!r}")
                        continue
                    send_frame(sock, encode_reply(clock()))
                    replies += 1
                    logger.log(TRACE, f"Replied to {peer} ({replies})")
                    if replies % LOG_PROGRESS_INTERVAL == 0:
                        logger.debug(f"Session {peer}: {replies} replies")
            except FrameOverflowError as e:
                logger.warning(f"Buffer overflow from client {peer}, clearing: {e}")
            except OSError as e:
                logger.warning(f"Send error to {peer}: {e}")
                break
