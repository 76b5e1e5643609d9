"""Synchronous execution of daemon control commands.

Every control action (start, stop, reload, config check...) ends up as one
external command line. This module runs it to completion, captures its output
and separates "could not launch" from "ran and exited non-zero".
"""

from __future__ import annotations

import logging
import subprocess
import sys
import time
from dataclasses import dataclass

from srvctl.errors import CommandExecutionFailed, CommandFailed

logger = logging.getLogger(__name__)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


@dataclass(frozen=True)
class CommandOutcome:
    """Exit status and captured output of one command."""

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Exit code 0 is the only success signal."""
        return self.exit_code == 0

    def raise_for_status(self) -> "CommandOutcome":
        """Raise CommandFailed if the command exited non-zero.

        Returns:
            self, so calls can be chained
        """
        if not self.ok:
            raise CommandFailed(self.command, self.exit_code, self.stdout, self.stderr)
        return self


class CommandRunner:
    """Runs control commands and blocks until they exit.

    No timeout is applied here; bounded waiting is the controller's job.
    """

    def run(self, command: list[str]) -> CommandOutcome:
        """Execute a command line.

        Args:
            command: Command and arguments

        Returns:
            CommandOutcome, including non-zero exits

        Raises:
            CommandExecutionFailed: If the command could not be launched
        """
        logger.debug(f"Running: {' '.join(command)}")
        kwargs = {}
        flags = get_subprocess_creation_flags()
        if flags:
            kwargs["creationflags"] = flags

        start = time.time()
        try:
            result = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
                **kwargs,
            )
        except OSError as e:
            logger.error(f"Failed to launch {command[0]}: {e}")
            raise CommandExecutionFailed(command, e) from e

        outcome = CommandOutcome(
            command=list(command),
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            duration=time.time() - start,
        )
        if outcome.ok:
            logger.debug(f"Command succeeded in {outcome.duration:.2f}s")
        else:
            logger.warning(f"Command '{' '.join(command)}' exited with code {outcome.exit_code} in {outcome.duration:.2f}s")
        return outcome
