"""
Pid file reading and process liveness.

The pid file is written by the controlled daemon and is the single source of
truth for which process we are talking to. Nothing here caches: every call goes
back to disk and to the OS process table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import psutil

from srvctl.errors import CorruptPidFile, UnreadablePidFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Liveness:
    """Result of probing a pid.

    Attributes:
        pid: The probed process id
        alive: True if a non-zombie process with this pid exists
        owner: Username owning the process (None if dead or not readable)
    """

    pid: int
    alive: bool
    owner: str | None = None


class PidFileStore:
    """Reads pid files and resolves pids to liveness."""

    def read(self, path: Path | str) -> int | None:
        """Read the pid recorded in a pid file.

        Args:
            path: Path to the pid file

        Returns:
            The pid, or None if the file does not exist

        Raises:
            CorruptPidFile: If the file exists but is not a positive decimal integer
            UnreadablePidFile: If the file exists but cannot be read
        """
        pid_path = Path(path)
        try:
            raw = pid_path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            logger.debug(f"No pid file at {pid_path}")
            return None
        except OSError as e:
            raise UnreadablePidFile(str(pid_path), e) from e

        content = raw.strip()
        # Daemons write "<pid>\n"; tolerate anything after the first token.
        token = content.split()[0] if content else ""
        # isdigit() alone accepts non-ASCII digits such as "²" or "٤".
        if not (token.isascii() and token.isdigit()) or int(token) <= 0:
            raise CorruptPidFile(str(pid_path), content)

        pid = int(token)
        logger.debug(f"Read pid {pid} from {pid_path}")
        return pid

    def probe_liveness(self, pid: int) -> Liveness:
        """Check whether a process with this pid is running.

        Args:
            pid: Process id to probe

        Returns:
            Liveness with the owning user when alive
        """
        try:
            proc = psutil.Process(pid)
            if proc.status() == psutil.STATUS_ZOMBIE:
                logger.debug(f"Process {pid} is a zombie, treating as dead")
                return Liveness(pid=pid, alive=False)
            try:
                owner = proc.username()
            except psutil.AccessDenied:
                owner = None
            return Liveness(pid=pid, alive=True, owner=owner)
        except psutil.NoSuchProcess:
            return Liveness(pid=pid, alive=False)
        except psutil.AccessDenied:
            # Exists, but belongs to someone we cannot inspect.
            return Liveness(pid=pid, alive=True)


def current_username() -> str | None:
    """Username of the process running the controller."""
    try:
        return psutil.Process().username()
    except (psutil.Error, KeyError):
        return None
