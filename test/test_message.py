"""Unit tests for FrameBuffer line framing."""

import pytest

from common.message import FrameBuffer, FrameOverflowError


def _decode_all(buffer: FrameBuffer, chunks: list[bytes]) -> list[bytes]:
    frames: list[bytes] = []
    for chunk in chunks:
        buffer.append(chunk)
        frames.extend(buffer.frames())
    return frames


@pytest.mark.unit
class TestFrameExtraction:
    """Tests for next_frame/frames on well-formed input."""

    def test_single_frame(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PING\n")
        assert buffer.next_frame() == b"PING"
        assert buffer.next_frame() is None

    def test_no_delimiter_returns_none(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PIN")
        assert buffer.next_frame() is None
        assert buffer.pending == 3

    def test_trailing_carriage_return_trimmed(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PING\r\n")
        assert buffer.next_frame() == b"PING"

    def test_inner_carriage_return_kept(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PI\rNG\n")
        assert buffer.next_frame() == b"PI\rNG"

    def test_empty_line(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"\n")
        assert buffer.next_frame() == b""

    def test_byte_at_a_time_matches_single_write(self) -> None:
        stream = b"PING\n"
        one_call = _decode_all(FrameBuffer(64), [stream])
        per_byte = _decode_all(FrameBuffer(64), [bytes([b]) for b in stream])
        assert one_call == per_byte == [b"PING"]

    def test_pipelined_frames_in_one_buffer(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PING\nPING\nPING\n")
        assert list(buffer.frames()) == [b"PING", b"PING", b"PING"]
        assert buffer.pending == 0

    def test_partial_frame_preserved_across_reads(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PING\nPO")
        assert list(buffer.frames()) == [b"PING"]
        assert buffer.pending == 2

        buffer.append(b"NG 42\n")
        assert list(buffer.frames()) == [b"PONG 42"]

    def test_arbitrary_split_points(self) -> None:
        stream = b"PONG 1\r\nPONG 22\nPONG 333\n"
        expected = [b"PONG 1", b"PONG 22", b"PONG 333"]
        for split in range(1, len(stream)):
            buffer = FrameBuffer(64)
            assert _decode_all(buffer, [stream[:split], stream[split:]]) == expected


@pytest.mark.unit
class TestCompaction:
    """Tests for the read cursor and compaction."""

    def test_compact_moves_remainder_to_front(self) -> None:
        buffer = FrameBuffer(16)
        buffer.append(b"PING\nPIN")
        assert buffer.next_frame() == b"PING"
        buffer.compact()
        assert buffer.pending == 3
        assert buffer.space == 13

    def test_space_shrinks_with_pending_bytes(self) -> None:
        buffer = FrameBuffer(16)
        assert buffer.space == 16
        buffer.append(b"PING")
        assert buffer.space == 12

    def test_frames_compacts_even_when_abandoned(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"A\nB\nC")
        frames = buffer.frames()
        assert next(frames) == b"A"
        frames.close()
        assert buffer.pending == 3  # "B\nC"
        assert list(buffer.frames()) == [b"B"]

    def test_capacity_must_hold_a_frame(self) -> None:
        with pytest.raises(ValueError):
            FrameBuffer(1)


@pytest.mark.unit
class TestOverflow:
    """Tests for overflow reset and recovery."""

    def test_overflow_raises_and_resets(self) -> None:
        buffer = FrameBuffer(8)
        buffer.append(b"X" * 8)
        with pytest.raises(FrameOverflowError) as exc_info:
            buffer.next_frame()
        assert exc_info.value.discarded == 8
        assert exc_info.value.capacity == 8
        assert buffer.pending == 0

    def test_below_capacity_is_not_overflow(self) -> None:
        buffer = FrameBuffer(8)
        buffer.append(b"X" * 7)
        assert buffer.next_frame() is None
        assert buffer.pending == 7

    def test_complete_frames_before_overflow_are_returned(self) -> None:
        buffer = FrameBuffer(8)
        buffer.append(b"OK\n" + b"X" * 8)
        assert buffer.next_frame() == b"OK"
        with pytest.raises(FrameOverflowError):
            buffer.next_frame()

    def test_recovers_after_overflow(self) -> None:
        buffer = FrameBuffer(8)
        buffer.append(b"X" * 8)
        with pytest.raises(FrameOverflowError):
            list(buffer.frames())

        buffer.append(b"PING\n")
        assert list(buffer.frames()) == [b"PING"]

    def test_reset_discards_everything(self) -> None:
        buffer = FrameBuffer(64)
        buffer.append(b"PING\nPI")
        buffer.reset()
        assert buffer.pending == 0
        assert buffer.next_frame() is None
