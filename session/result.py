"""Session result types for tcpping.

Contains:
- ProbeRecord: One request/reply exchange
- SessionStats: Running RTT aggregation in integer microseconds
- LatencySummary: Final min/avg/max and loss figures
- SessionResult: Result from a probe session
"""

from dataclasses import dataclass, field

from common.encoding import TransportError


@dataclass(frozen=True)
class ProbeRecord:
    """One probe. recv_us and rtt_us are None when the reply was lost."""

    seq: int
    send_us: int
    recv_us: int | None = None
    rtt_us: int | None = None
    server_timestamp_us: int | None = None
    error: TransportError | None = None

    @property
    def lost(self) -> bool:
        return self.recv_us is None

    @property
    def rtt_ms(self) -> float | None:
        return None if self.rtt_us is None else self.rtt_us / 1000


@dataclass(frozen=True)
class LatencySummary:
    """Final statistics, only computed when at least one probe succeeded."""

    transmitted: int
    received: int
    lost: int
    loss_rate: float
    min_us: int
    avg_us: float
    max_us: int

    @property
    def min_ms(self) -> float:
        return self.min_us / 1000

    @property
    def avg_ms(self) -> float:
        return self.avg_us / 1000

    @property
    def max_ms(self) -> float:
        return self.max_us / 1000


@dataclass
class SessionStats:
    """Running count/min/max/sum of RTT plus loss count.

    Accumulates in integer microseconds; millisecond conversion happens
    only when reporting.
    """

    count: int = 0
    lost: int = 0
    min_us: int | None = None
    max_us: int | None = None
    sum_us: int = 0

    def record(self, rtt_us: int) -> None:
        """Record one successful probe."""
        if rtt_us < 0:
            raise ValueError(f"RTT must not be negative, got {rtt_us}us")
        self.count += 1
        self.sum_us += rtt_us
        if self.min_us is None or rtt_us < self.min_us:
            self.min_us = rtt_us
        if self.max_us is None or rtt_us > self.max_us:
            self.max_us = rtt_us

    def record_loss(self) -> None:
        """Record one unanswered probe."""
        self.lost += 1

    @property
    def transmitted(self) -> int:
        return self.count + self.lost

    @property
    def loss_rate(self) -> float:
        """Return loss as a percentage (0-100) of transmitted probes."""
        if self.transmitted == 0:
            return 0.0
        return 100 * self.lost / self.transmitted

    @property
    def avg_us(self) -> float | None:
        if self.count == 0:
            return None
        return self.sum_us / self.count

    def summary(self) -> LatencySummary | None:
        """Return final statistics, or None if no probe succeeded."""
        if self.count == 0:
            return None
        # min/max are set whenever count > 0
        assert self.min_us is not None and self.max_us is not None
        return LatencySummary(
            transmitted=self.transmitted,
            received=self.count,
            lost=self.lost,
            loss_rate=self.loss_rate,
            min_us=self.min_us,
            avg_us=self.sum_us / self.count,
            max_us=self.max_us,
        )


@dataclass
class SessionResult:
    """Result from a probe session.

    Attributes:
        stats: Accumulated statistics.
        probes: Every probe emitted, in sequence order.
        error: Transport error that ended the session, if any.
        cancelled: True if the session ended on a cancellation request.
        elapsed_s: Session duration in seconds.
    """

    stats: SessionStats = field(default_factory=SessionStats)
    probes: list[ProbeRecord] = field(default_factory=list)
    error: TransportError | None = None
    cancelled: bool = False
    elapsed_s: float = 0.0

    @property
    def success(self) -> bool:
        """True if the session ended without a transport error."""
        return self.error is None
