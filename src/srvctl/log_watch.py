"""
Log tail watching.

Records how large a log file is just before a state-changing command, so that
whatever the daemon appends while the command runs can be reported back if
the operation fails.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogWatchCheckpoint:
    """Byte offset into a log file at a point in time."""

    path: Path
    offset: int
    inode: int | None = None


class LogTailWatcher:
    """Computes content appended to a log file since a checkpoint."""

    def checkpoint(self, path: Path | str) -> LogWatchCheckpoint:
        """Record the current size of a log file.

        An absent or unreadable file is a valid checkpoint at offset 0.
        """
        log_path = Path(path)
        try:
            st = log_path.stat()
        except OSError:
            logger.debug(f"Log {log_path} not present, checkpoint at 0")
            return LogWatchCheckpoint(path=log_path, offset=0)
        logger.debug(f"Checkpointed {log_path} at {st.st_size} bytes")
        return LogWatchCheckpoint(path=log_path, offset=st.st_size, inode=st.st_ino)

    def delta(self, checkpoint: LogWatchCheckpoint) -> str:
        """Return what was appended since the checkpoint.

        If the file shrank or was replaced since the checkpoint, the whole
        current content is returned instead.
        """
        try:
            with open(checkpoint.path, "rb") as f:
                st = os.fstat(f.fileno())
                offset = checkpoint.offset
                rotated = checkpoint.inode is not None and st.st_ino != checkpoint.inode
                if rotated or st.st_size < offset:
                    logger.debug(f"Log {checkpoint.path} was truncated or rotated, reading from start")
                    offset = 0
                f.seek(offset)
                data = f.read()
        except OSError:
            return ""
        return data.decode("utf-8", errors="replace")
