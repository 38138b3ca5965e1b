"""Unit tests for the server connection handler."""

import itertools
import logging

import pytest

from common.encoding import parse_reply_timestamp
from conftest import FakeSocket
from server.handler import handle_connection


def _counter_clock(start: int = 1_000_000):
    return itertools.count(start).__next__


@pytest.mark.unit
class TestReplies:
    """Tests for PING/PONG handling."""

    def test_single_ping(self) -> None:
        sock = FakeSocket([b"PING\n"])
        handle_connection(sock, "peer", clock=lambda: 42)
        assert bytes(sock.sent) == b"PONG 42\n"

    def test_pipelined_pings_in_one_read(self) -> None:
        sock = FakeSocket([b"PING\nPING\nPING\n"])
        handle_connection(sock, "peer", clock=_counter_clock())

        assert sock.lines == [b"PONG 1000000", b"PONG 1000001", b"PONG 1000002"]
        # All three answered from a single read, before the EOF read
        assert len(sock.recv_sizes) == 2

    def test_pipelined_timestamps_non_decreasing(self) -> None:
        sock = FakeSocket([b"PING\nPING\nPING\n"])
        handle_connection(sock, "peer")

        timestamps = [parse_reply_timestamp(line) for line in sock.lines]
        assert len(timestamps) == 3
        assert all(ts is not None for ts in timestamps)
        assert timestamps == sorted(timestamps)  # type: ignore[type-var]

    def test_byte_at_a_time(self) -> None:
        sock = FakeSocket([bytes([b]) for b in b"PING\n"])
        handle_connection(sock, "peer", clock=lambda: 7)
        assert sock.lines == [b"PONG 7"]

    def test_crlf_request(self) -> None:
        sock = FakeSocket([b"PING\r\n"])
        handle_connection(sock, "peer", clock=lambda: 7)
        assert sock.lines == [b"PONG 7"]

    def test_other_content_ignored(self) -> None:
        sock = FakeSocket([b"HELLO\nping\nPING extra\n\nPING\n"])
        handle_connection(sock, "peer", clock=lambda: 7)
        assert sock.lines == [b"PONG 7"]

    def test_partial_request_at_eof_not_answered(self) -> None:
        sock = FakeSocket([b"PING\nPIN"])
        handle_connection(sock, "peer", clock=lambda: 7)
        assert sock.lines == [b"PONG 7"]

    def test_reads_bounded_by_capacity(self) -> None:
        sock = FakeSocket([b"PING\n" * 10])
        handle_connection(sock, "peer", capacity=16, clock=lambda: 7)
        assert len(sock.lines) == 10
        assert all(size <= 16 for size in sock.recv_sizes)


@pytest.mark.unit
class TestOverflow:
    """Tests for overflow recovery."""

    def test_overflow_then_ping_still_answered(self, caplog: pytest.LogCaptureFixture) -> None:
        sock = FakeSocket([b"X" * 128, b"PING\n"])
        with caplog.at_level(logging.WARNING, logger="server.handler"):
            handle_connection(sock, "peer", capacity=64, clock=lambda: 7)

        assert sock.lines == [b"PONG 7"]
        assert caplog.text.lower().count("overflow") == 2

    def test_overflow_remainder_joins_next_line(self) -> None:
        # 70 bytes: 64 discarded, 6 stay buffered and prefix the first PING
        sock = FakeSocket([b"X" * 70, b"PING\n", b"PING\n"])
        handle_connection(sock, "peer", capacity=64, clock=lambda: 7)
        assert sock.lines == [b"PONG 7"]


@pytest.mark.unit
class TestConnectionLifecycle:
    """Tests for socket ownership and error handling."""

    def test_closed_on_eof(self) -> None:
        sock = FakeSocket([b"PING\n"])
        handle_connection(sock, "peer")
        assert sock.closed

    def test_closed_on_receive_error(self) -> None:
        sock = FakeSocket([b"PING\n"], recv_error=ConnectionResetError("reset"))
        handle_connection(sock, "peer", clock=lambda: 7)
        assert sock.closed
        assert sock.lines == [b"PONG 7"]

    def test_closed_on_send_error(self) -> None:
        sock = FakeSocket([b"PING\n", b"PING\n"], send_error=BrokenPipeError("gone"))
        handle_connection(sock, "peer")
        assert sock.closed
        assert sock.sent == b""

    def test_closed_when_clock_raises(self) -> None:
        def broken_clock() -> int:
            raise RuntimeError("clock failure")

        sock = FakeSocket([b"PING\n"])
        with pytest.raises(RuntimeError):
            handle_connection(sock, "peer", clock=broken_clock)
        assert sock.closed
