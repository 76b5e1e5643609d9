"""
Command-line interface for srvctl.

This module provides the `srvctl` tool for controlling a server daemon
through its pid file:

    srvctl --conf-file /etc/nginx/nginx.conf --pid-file /run/nginx.pid start
    srvctl --conf-file /etc/nginx/nginx.conf --log-dir /var/log/nginx graceful
    srvctl --conf-file ./nginx.conf --pid-file ./nginx.pid --port 8080 status

Exit codes: 0 on success, 1 when the operation failed, 2 on invalid
configuration.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from srvctl import __version__
from srvctl.adapters import available_adapters, get_adapter
from srvctl.config import ControllerSettings
from srvctl.controller import ServerController
from srvctl.errors import CommandExecutionFailed, CommandFailed, ConfigurationError

ACTIONS = ("start", "stop", "restart", "graceful", "graceful-stop", "check-config", "reopen-log", "status")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ControlArgs:
    """Arguments for a control action."""

    action: str
    conf_file: Path
    adapter: str = "nginx"
    binary_path: str | None = None
    pid_file: Path | None = None
    log_dir: Path | None = None
    error_log: Path | None = None
    bind_addr: str | None = None
    port: int | None = None
    user: str | None = None
    validate_url: str | None = None
    validate_regex: str | None = None
    poll_interval: float | None = None
    start_timeout: float | None = None
    stop_timeout: float | None = None
    reload_timeout: float | None = None


def setup_logging(level: str = "info") -> None:
    """Configure root logging to stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def build_controller(args: ControlArgs) -> ServerController:
    """Create the controller described by the arguments.

    Raises:
        ConfigurationError: If the arguments do not describe a valid daemon
    """
    settings = ControllerSettings.from_env().with_overrides(
        poll_interval=args.poll_interval,
        start_timeout=args.start_timeout,
        stop_timeout=args.stop_timeout,
        reload_timeout=args.reload_timeout,
    )
    return ServerController(
        get_adapter(args.adapter, binary_path=args.binary_path),
        args.conf_file,
        pid_file=args.pid_file,
        log_dir=args.log_dir,
        error_log=args.error_log,
        bind_address=args.bind_addr,
        port=args.port,
        user=args.user,
        validate_url=args.validate_url,
        validate_regex=args.validate_regex,
        settings=settings,
        logger=logging.getLogger(f"srvctl.{args.adapter}"),
    )


def run_action(controller: ServerController, action: str) -> int:
    """Run one action and print its outcome.

    Returns:
        Process exit code
    """
    if action == "status":
        print(controller.status_as_string())
        return 0 if controller.is_running() else 1

    if action == "check-config":
        try:
            controller.check_config_syntax()
        except (CommandFailed, CommandExecutionFailed) as e:
            print(f"✗ {e}", file=sys.stderr)
            return 1
        print(f"✓ {controller.process.config_file} syntax ok")
        return 0

    operations = {
        "start": controller.start,
        "stop": controller.stop,
        "restart": controller.restart,
        "graceful": controller.graceful,
        "graceful-stop": controller.graceful_stop,
        "reopen-log": controller.reopen_logs,
    }
    result = operations[action]()
    if result:
        print(f"✓ {result.reason}")
        return 0
    print(f"✗ {result.reason}", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srvctl",
        description="Control a server daemon through its pid file",
    )
    parser.add_argument("--version", action="version", version=f"srvctl {__version__}")
    parser.add_argument("action", choices=ACTIONS, help="Operation to perform")
    parser.add_argument("-c", "--conf-file", type=Path, required=True, help="Daemon configuration file")
    parser.add_argument("--adapter", choices=available_adapters(), default="nginx", help="Daemon kind (default: nginx)")
    parser.add_argument("--binary-path", default=None, help="Daemon executable (default: looked up on PATH)")
    parser.add_argument("--pid-file", type=Path, default=None, help="Pid file (default: derived from --log-dir)")
    parser.add_argument("--log-dir", type=Path, default=None, help="Daemon log directory")
    parser.add_argument("--error-log", type=Path, default=None, help="Error log reported on failure")
    parser.add_argument("--bind-addr", default=None, help="Address the daemon listens on")
    parser.add_argument("--port", type=int, default=None, help="Port the daemon listens on")
    parser.add_argument("--user", default=None, help="Expected owner of the daemon process")
    parser.add_argument("--validate-url", default=None, help="URL fetched to validate a running server")
    parser.add_argument("--validate-regex", default=None, help="Pattern the validate URL must match")
    parser.add_argument("--poll-interval", type=float, default=None, help="Seconds between status checks")
    parser.add_argument("--start-timeout", type=float, default=None, help="Seconds to wait for start")
    parser.add_argument("--stop-timeout", type=float, default=None, help="Seconds to wait for stop")
    parser.add_argument("--reload-timeout", type=float, default=None, help="Seconds to wait after graceful reload")
    parser.add_argument("--log-level", choices=["debug", "info", "warning", "error"], default="info", help="Diagnostic log level")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parsed = build_parser().parse_args(argv)
    setup_logging(parsed.log_level)

    args = ControlArgs(
        action=parsed.action,
        conf_file=parsed.conf_file,
        adapter=parsed.adapter,
        binary_path=parsed.binary_path,
        pid_file=parsed.pid_file,
        log_dir=parsed.log_dir,
        error_log=parsed.error_log,
        bind_addr=parsed.bind_addr,
        port=parsed.port,
        user=parsed.user,
        validate_url=parsed.validate_url,
        validate_regex=parsed.validate_regex,
        poll_interval=parsed.poll_interval,
        start_timeout=parsed.start_timeout,
        stop_timeout=parsed.stop_timeout,
        reload_timeout=parsed.reload_timeout,
    )

    try:
        controller = build_controller(args)
    except ConfigurationError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        return 2

    return run_action(controller, args.action)


if __name__ == "__main__":
    sys.exit(main())
