#!/usr/bin/env python3
"""TCP ping: application-layer RTT over one persistent TCP connection."""

import argparse
import logging
import sys

from client.runner import ExitCode, run_client
from common.config import ClientConfig, ConfigError, ServerConfig
from common.connection import Family, Target
from common.protocol import DEFAULT_INTERVAL_S, DEFAULT_PORT, DEFAULT_TIMEOUT_S, TRACE
from server.runner import run_server

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    """Configure root logging; -v for DEBUG, -vv for TRACE."""
    level = {0: logging.INFO, 1: logging.DEBUG}.get(verbosity, TRACE)
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def client_config_from_args(args: argparse.Namespace) -> ClientConfig:
    """Build and validate a ClientConfig. Raises ConfigError."""
    family = Family.AUTO
    if args.ipv4:
        family = Family.V4
    elif args.ipv6:
        family = Family.V6

    config = ClientConfig(
        target=Target(host=args.host, port=args.port, family=family),
        count=args.count,
        interval_s=args.interval,
        timeout_s=args.timeout,
    )
    return config.validate()


def server_config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Build and validate a ServerConfig. Raises ConfigError."""
    return ServerConfig(port=args.port, max_sessions=args.max_sessions).validate()


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add port and verbosity arguments to a parser."""
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"TCP port (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v debug, -vv trace)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Measure round-trip latency over a persistent TCP connection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s server                          Serve on the default port
  %(prog)s client 192.168.1.1              Ping until Ctrl-C
  %(prog)s client example.com -c 10 -4     10 probes over IPv4
  %(prog)s client ::1 -p 9999 -i 2         IPv6 localhost, 2s cadence
""",
    )
    subparsers = parser.add_subparsers(dest="mode")

    client_parser = subparsers.add_parser("client", help="Probe a tcpping server")
    client_parser.add_argument("host", help="Target hostname or IP (v4/v6)")
    _add_common_args(client_parser)
    client_parser.add_argument(
        "-c",
        "--count",
        type=int,
        default=None,
        help="Number of probes (default: unbounded)",
    )
    client_parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL_S,
        help=f"Seconds between probes (default: {DEFAULT_INTERVAL_S:g})",
    )
    client_parser.add_argument(
        "-W",
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help=f"Reply timeout in seconds, 0 = wait forever (default: {DEFAULT_TIMEOUT_S:g})",
    )
    family_group = client_parser.add_mutually_exclusive_group()
    family_group.add_argument("-4", dest="ipv4", action="store_true", help="Force IPv4")
    family_group.add_argument("-6", dest="ipv6", action="store_true", help="Force IPv6")

    server_parser = subparsers.add_parser("server", help="Answer probes from clients")
    _add_common_args(server_parser)
    server_parser.add_argument(
        "--max-sessions",
        type=int,
        default=None,
        help="Serve at most N sessions at once (default: unbounded)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode is None:
        parser.print_help()
        return ExitCode.CONFIG_ERROR

    _configure_logging(args.verbose)

    try:
        if args.mode == "client":
            return run_client(client_config_from_args(args))
        return run_server(server_config_from_args(args))
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return ExitCode.CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
