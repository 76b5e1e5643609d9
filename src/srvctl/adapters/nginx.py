"""Nginx command adapter.

Nginx is driven entirely through its own binary: `-c` selects the config,
`-s <signal>` talks to a running master process and `-t` checks syntax.
"""

from __future__ import annotations

import logging
from pathlib import Path

from srvctl.adapters.base import Action, ArgumentBuilder, DaemonAdapter

logger = logging.getLogger(__name__)


class NginxAdapter(DaemonAdapter):
    """Adapter for nginx master processes."""

    name = "nginx"
    binary_name = "nginx"

    def default_pid_file_path(self, log_dir: Path | None) -> Path | None:
        if log_dir is not None and log_dir.is_dir():
            logger.debug(f"Defaulting pid file to {log_dir / 'nginx.pid'}")
            return log_dir / "nginx.pid"
        return None

    def default_error_log(self, log_dir: Path | None) -> Path | None:
        if log_dir is not None:
            return log_dir / "error.log"
        return None

    def command_arguments(self) -> dict[Action, ArgumentBuilder]:
        return {
            Action.START: lambda conf: ["-c", conf],
            Action.STOP: lambda conf: ["-c", conf, "-s", "stop"],
            Action.RELOAD: lambda conf: ["-c", conf, "-s", "reload"],
            Action.GRACEFUL_STOP: lambda conf: ["-c", conf, "-s", "quit"],
            # -q suppresses the "syntax is ok" chatter so success is silent
            Action.CHECK_CONFIG: lambda conf: ["-t", "-q", "-c", conf],
            Action.REOPEN_LOG: lambda conf: ["-c", conf, "-s", "reopen"],
        }
