"""Command line entry point.

``rtcsig munge`` runs an SDP body through the codec policy engine, the same
rewrites the signaling client applies during negotiation.
"""

import argparse
import logging
import sys
from typing import Optional

import structlog

from rtcsig import __version__
from rtcsig.config import config
from rtcsig.core.options import SdpOptions
from rtcsig.sdp.policy import munge_local_description, munge_remote_description


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure structured logging to stderr (stdout carries SDP output)."""
    level_name = (log_level or config.system.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if config.system.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _read_sdp(path: Optional[str]) -> str:
    # Bytes in, so CRLF separators survive untouched.
    if not path or path == "-":
        return sys.stdin.buffer.read().decode("utf-8")
    with open(path, "rb") as f:
        return f.read().decode("utf-8")


def munge(args: argparse.Namespace) -> int:
    """Apply the local (or remote) description policy to an SDP body.

    Returns:
        Process exit code
    """
    logger = structlog.get_logger(__name__)

    options_file = args.options or config.signaling.options_file
    options = SdpOptions.from_yaml_or_none(options_file) or SdpOptions()

    sdp = _read_sdp(args.sdp_file)
    if args.remote:
        result = munge_remote_description(sdp, options)
    else:
        result = munge_local_description(sdp, options)

    logger.info(
        "SDP munged",
        direction="remote" if args.remote else "local",
        options=options.to_dict(),
        changed=result != sdp
    )
    sys.stdout.write(result)
    sys.stdout.flush()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtcsig",
        description="WebRTC signaling toolkit: SDP codec policy rewriting"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--log-level", default=None, help="Override RTCSIG_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", required=True)

    munge_parser = subparsers.add_parser("munge", help="Rewrite an SDP body")
    munge_parser.add_argument("sdp_file", nargs="?", default="-", help="SDP file (default: stdin)")
    munge_parser.add_argument("--options", default=None, help="YAML file with SDP options")
    munge_parser.add_argument(
        "--remote",
        action="store_true",
        help="Apply the remote-description (send side) policy"
    )
    munge_parser.set_defaults(func=munge)

    return parser


def cli(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    logger = structlog.get_logger(__name__)

    try:
        return args.func(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Fatal error", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(cli())
