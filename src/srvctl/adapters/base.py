"""
Daemon adapter interface.

An adapter knows one daemon's command line: where the binary lives, which
flags start/stop/reload it and where it puts its pid file by default. The
controller only ever talks to this interface.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable

from srvctl.errors import UnsupportedAction

# Takes the config file path, returns the arguments that follow the binary.
ArgumentBuilder = Callable[[str], list[str]]


class Action(Enum):
    """Control actions an adapter may translate into a command line."""

    START = "start"
    STOP = "stop"
    RELOAD = "reload"
    GRACEFUL_STOP = "graceful-stop"
    CHECK_CONFIG = "check-config"
    REOPEN_LOG = "reopen-log"


class DaemonAdapter(ABC):
    """Base class for per-daemon command adapters."""

    name: str = "daemon"
    binary_name: str = ""

    def __init__(self, binary_path: Path | str | None = None):
        """Initialize adapter.

        Args:
            binary_path: Explicit path to the daemon binary. When omitted the
                binary is looked up on PATH by binary_name.
        """
        self._binary_path = Path(binary_path) if binary_path else None

    def resolve_binary_path(self) -> str:
        """Resolve the daemon executable.

        Returns:
            Absolute path when it can be found, otherwise the bare binary name
            (launching it will then fail with CommandExecutionFailed)
        """
        if self._binary_path is not None:
            return str(self._binary_path.resolve()) if self._binary_path.exists() else str(self._binary_path)
        found = shutil.which(self.binary_name)
        return str(Path(found).resolve()) if found else self.binary_name

    def default_pid_file_path(self, log_dir: Path | None) -> Path | None:
        """Pid file location used when none is configured."""
        return None

    def default_error_log(self, log_dir: Path | None) -> Path | None:
        """Error log location used when none is configured."""
        return None

    def default_bind_address(self) -> str:
        return "localhost"

    def supported_actions(self) -> frozenset[Action]:
        """Actions this adapter can build commands for."""
        return frozenset(self.command_arguments().keys())

    def build_command(self, action: Action | str, config_file: Path | str) -> list[str]:
        """Build the command line for an action.

        Args:
            action: Action (or its string value)
            config_file: Daemon configuration file

        Returns:
            Command and arguments

        Raises:
            UnsupportedAction: If the adapter does not implement the action
        """
        if not isinstance(action, Action):
            try:
                action = Action(action)
            except ValueError:
                raise UnsupportedAction(action, self.name) from None

        arguments = self.command_arguments()
        if action not in arguments:
            raise UnsupportedAction(action.value, self.name)
        return [self.resolve_binary_path(), *arguments[action](str(config_file))]

    @abstractmethod
    def command_arguments(self) -> dict[Action, ArgumentBuilder]:
        """Map each supported action to a function building its arguments.

        Returns:
            Dict of action to callable taking the config file path and
            returning the arguments that follow the binary
        """
        pass
