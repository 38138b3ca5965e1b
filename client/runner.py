"""Client runner for tcpping.

Contains run_client() which establishes the connection, runs the probe
session and prints the final statistics, returning an exit code.
"""

import logging
from enum import IntEnum

from client.handshake import establish
from client.shutdown import cancel_on_interrupt
from common.config import ClientConfig, ConfigError
from common.connection import ConnectError, ResolutionError
from common.io import CancelToken
from common.report import ConnectReport
from session.exchange import run_probes
from session.report import ProbeReport, SessionReport
from session.result import ProbeRecord

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Exit codes for client operations."""

    SUCCESS = 0  # Count reached, interrupted, or session ended after connect
    CONNECT_FAILED = 1  # Every candidate refused or timed out
    CONFIG_ERROR = 2  # Invalid option value, no network activity
    RESOLUTION_FAILED = 3  # Host lookup failed


def run_client(
    config: ClientConfig,
    token: CancelToken | None = None,
    handle_interrupt: bool = True,
) -> int:
    """Run client: connect + probe session. Returns exit code.

    The client:
    - Resolves the target and connects to the first reachable candidate
    - Sends probes until the count is reached, cancellation, or a lost reply
    - Prints per-probe lines and final statistics

    Args:
        config: Client configuration, validated here.
        token: Cancellation token; a fresh one is created if None.
        handle_interrupt: Route SIGINT to the token (main thread only).
    """
    try:
        config.validate()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return ExitCode.CONFIG_ERROR

    token = token or CancelToken()
    target = config.target

    try:
        conn = establish(target, timeout_s=config.timeout_s)
    except ResolutionError as e:
        logger.error(f"Resolution failed: {e}")
        return ExitCode.RESOLUTION_FAILED
    except ConnectError as e:
        logger.error(f"Connect failed: {e}")
        ConnectReport(connected=False, error=e).print()
        return ExitCode.CONNECT_FAILED
    except KeyboardInterrupt:
        # Ctrl+C during resolution or a blocking connect
        logger.info("Interrupted before a connection was established")
        return ExitCode.SUCCESS

    with conn:
        ConnectReport(connected=True, connection=conn).print()
        print(
            f"Starting long-connection ping (interval: {config.interval_s:g}s, "
            f"press Ctrl+C to stop)...\n"
        )

        def on_probe(record: ProbeRecord) -> None:
            ProbeReport(peer=conn.peer, record=record).print()

        if handle_interrupt:
            with cancel_on_interrupt(token):
                result = run_probes(conn, config, token, on_probe=on_probe)
        else:
            result = run_probes(conn, config, token, on_probe=on_probe)

        SessionReport(host=target.host, result=result).print()

    if result.error is not None:
        logger.warning(f"Session ended early: {result.error}")
    elif result.cancelled:
        logger.info("Session cancelled")

    return ExitCode.SUCCESS
