"""Session reporting for tcpping.

Contains:
- ProbeReport: One line per probe
- SessionReport: Final statistics after the session ends
"""

from dataclasses import dataclass

from common.report import Report
from session.result import ProbeRecord, SessionResult


@dataclass
class ProbeReport(Report):
    """Report for a single probe."""

    peer: str
    record: ProbeRecord

    def print(self) -> None:
        r = self.record
        if r.lost:
            print(f"No reply for seq={r.seq} ({r.error})")
        else:
            print(f"Reply from {self.peer}: seq={r.seq} time={r.rtt_ms:.3f} ms")

    def success(self) -> bool:
        return not self.record.lost


@dataclass
class SessionReport(Report):
    """Report after the probe session ends."""

    host: str
    result: SessionResult

    def print(self) -> None:
        """Print the final statistics."""
        stats = self.result.stats
        print(f"\n--- {self.host} tcpping statistics ---")
        print(
            f"{stats.transmitted} packets transmitted, {stats.count} received, "
            f"{stats.lost} lost, {stats.loss_rate:.1f}% packet loss"
        )

        # No average without a successful probe
        summary = stats.summary()
        if summary is None:
            print("No successful probes.")
            return
        print(
            f"rtt min/avg/max = {summary.min_ms:.3f}/{summary.avg_ms:.3f}/"
            f"{summary.max_ms:.3f} ms"
        )

    def success(self) -> bool:
        """Return True if at least one probe succeeded and none were lost."""
        stats = self.result.stats
        return stats.count > 0 and stats.lost == 0
