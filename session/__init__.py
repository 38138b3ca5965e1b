"""Probe session package for tcpping.

This package handles latency measurement after the connection is up:
- Request-reply probe loop with deadline-gated reads
- RTT (round-trip time) measurement from local timestamps
- Statistics tracking (count, lost, min/avg/max)
- Per-probe and final reports
"""

from session.exchange import ProbeState, await_reply, run_probes
from session.report import ProbeReport, SessionReport
from session.result import LatencySummary, ProbeRecord, SessionResult, SessionStats

__all__ = [
    "LatencySummary",
    "ProbeRecord",
    "ProbeReport",
    "ProbeState",
    "SessionReport",
    "SessionResult",
    "SessionStats",
    "await_reply",
    "run_probes",
]
