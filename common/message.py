"""Line framing for the tcpping byte stream.

Frames are newline-delimited. TCP may fragment or coalesce writes, so
received bytes are accumulated in a bounded FrameBuffer and frames are
extracted as delimiters appear:

  append(data) -> next_frame() ... -> compact()

Bytes after the last delimiter stay buffered for the next read. If the
buffer fills up without a delimiter, its contents are discarded and
FrameOverflowError is raised; the stream recovers at the next line.
"""

import logging
from collections.abc import Iterator

from common.protocol import DELIMITER

logger = logging.getLogger(__name__)

CARRIAGE_RETURN = b"\r"


class FrameOverflowError(Exception):
    """Raised when the buffer fills up without containing a delimiter."""

    def __init__(self, discarded: int, capacity: int) -> None:
        super().__init__(
            f"Frame exceeds buffer capacity ({capacity} bytes), discarded {discarded} bytes"
        )
        self.discarded = discarded
        self.capacity = capacity


class FrameBuffer:
    """Bounded accumulator of received bytes with a read cursor."""

    def __init__(self, capacity: int) -> None:
        if capacity < 2:
            raise ValueError(f"Buffer capacity must be at least 2 bytes, got {capacity}")
        self._capacity = capacity
        self._data = bytearray()
        self._cursor = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def pending(self) -> int:
        """Bytes appended but not yet consumed as part of a frame."""
        return len(self._data) - self._cursor

    @property
    def space(self) -> int:
        """Bytes that can be read before the buffer reaches capacity."""
        return max(1, self._capacity - self.pending)

    def append(self, data: bytes) -> None:
        self._data += data

    def next_frame(self) -> bytes | None:
        """Extract the next complete frame, or None if no delimiter is buffered.

        The delimiter is not part of the returned frame, and a trailing
        carriage return is trimmed.

        Raises:
            FrameOverflowError: No delimiter buffered and the pending bytes
                fill the capacity. The buffer is reset before raising.
        """
        end = self._data.find(DELIMITER, self._cursor)
        if end < 0:
            if self.pending >= self._capacity:
                discarded = self.pending
                self.reset()
                raise FrameOverflowError(discarded, self._capacity)
            return None

        frame = bytes(self._data[self._cursor : end])
        self._cursor = end + len(DELIMITER)
        if frame.endswith(CARRIAGE_RETURN):
            frame = frame[: -len(CARRIAGE_RETURN)]
        return frame

    def compact(self) -> None:
        """Move unconsumed bytes to the front of the buffer."""
        if self._cursor:
            del self._data[: self._cursor]
            self._cursor = 0

    def frames(self) -> Iterator[bytes]:
        """Yield every complete frame currently buffered, then compact."""
        try:
            while True:
                frame = self.next_frame()
                if frame is None:
                    return
                yield frame
        finally:
            self.compact()

    def reset(self) -> None:
        self._data.clear()
        self._cursor = 0
