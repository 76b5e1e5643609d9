"""
Status and result types.

ProcessStatus is derived fresh on every query; OperationResult is what a
lifecycle operation hands back to its caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from srvctl.errors import ControlError


class StatusKind(Enum):
    """Kind of a process status."""

    NOT_RUNNING = "not running"
    RUNNING = "running"
    RUNNING_DIFFERENT_USER = "running as different user"
    INVALID = "invalid"


class ServerState(Enum):
    """Lifecycle state of the controlled server as seen by an operation."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessStatus:
    """Result of a liveness check.

    Attributes:
        kind: Which status this is
        pid: Pid from the pid file (None when not running)
        user: Owning user of the process, when known
        reason: Why the status is INVALID (stale or corrupt pid file)
    """

    kind: StatusKind
    pid: int | None = None
    user: str | None = None
    reason: str | None = None

    @classmethod
    def not_running(cls) -> "ProcessStatus":
        return cls(StatusKind.NOT_RUNNING)

    @classmethod
    def running(cls, pid: int, user: str | None = None) -> "ProcessStatus":
        return cls(StatusKind.RUNNING, pid=pid, user=user)

    @classmethod
    def running_as(cls, pid: int, user: str) -> "ProcessStatus":
        return cls(StatusKind.RUNNING_DIFFERENT_USER, pid=pid, user=user)

    @classmethod
    def invalid(cls, reason: str, pid: int | None = None) -> "ProcessStatus":
        return cls(StatusKind.INVALID, pid=pid, reason=reason)

    @property
    def is_running(self) -> bool:
        """True for RUNNING and RUNNING_DIFFERENT_USER."""
        return self.kind in (StatusKind.RUNNING, StatusKind.RUNNING_DIFFERENT_USER)

    def __str__(self) -> str:
        if self.kind == StatusKind.RUNNING:
            return f"running (pid {self.pid})"
        if self.kind == StatusKind.RUNNING_DIFFERENT_USER:
            return f"running (pid {self.pid}, owned by {self.user})"
        if self.kind == StatusKind.INVALID:
            return f"not running ({self.reason})"
        return "not running"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a lifecycle operation.

    Truthy when the operation succeeded. `error` holds the failure when it did
    not. `dispatch_error` is set when sending a command failed but the
    operation went on to check its post-condition anyway (graceful reload,
    graceful stop); the caller decides how much that matters.
    """

    operation: str
    success: bool
    state: ServerState
    status: ProcessStatus | None = None
    error: ControlError | None = None
    dispatch_error: ControlError | None = None
    log_output: str = ""

    def __bool__(self) -> bool:
        return self.success

    @property
    def reason(self) -> str:
        """Human-readable explanation of the outcome."""
        if self.success:
            text = f"{self.operation} succeeded"
            if self.status is not None:
                text += f": {self.status}"
            if self.dispatch_error is not None:
                text += f" (command reported: {self.dispatch_error})"
            return text
        text = f"{self.operation} failed: {self.error}"
        if self.log_output and (self.error is None or self.log_output.strip() not in str(self.error)):
            text += f"\nerror log output:\n{self.log_output.rstrip()}"
        return text
