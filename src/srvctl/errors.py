"""
Exception taxonomy for server control.

Construction problems raise immediately. Failures during a lifecycle operation
are carried back inside an OperationResult so callers can render the reason
(including any captured log output) without re-running anything.
"""

from __future__ import annotations


class ControlError(Exception):
    """Base class for all server control failures."""

    pass


class ConfigurationError(ControlError):
    """Raised when a controller is constructed with invalid input."""

    pass


class PidFileError(ControlError):
    """Base class for a pid file that exists but cannot be used."""

    pass


class CorruptPidFile(PidFileError):
    """Raised when a pid file exists but does not hold a positive decimal integer."""

    def __init__(self, path: str, content: str):
        self.path = path
        self.content = content
        super().__init__(f"corrupt pid file {path}: {content!r}")


class UnreadablePidFile(PidFileError):
    """Raised when a pid file exists but cannot be read (a directory, no permission)."""

    def __init__(self, path: str, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read pid file {path}: {cause}")


class CommandExecutionFailed(ControlError):
    """Raised when a control command could not be launched at all."""

    def __init__(self, command: list[str], cause: OSError):
        self.command = command
        self.cause = cause
        super().__init__(f"could not execute '{' '.join(command)}': {cause}")


class CommandFailed(ControlError):
    """Raised when a control command ran but exited non-zero."""

    def __init__(self, command: list[str], exit_code: int, stdout: str = "", stderr: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        message = f"'{' '.join(command)}' exited with code {exit_code}"
        if self.output:
            message += f":\n{self.output}"
        super().__init__(message)

    @property
    def output(self) -> str:
        """Captured output, stderr first since that is where daemons complain."""
        return "\n".join(part.strip() for part in (self.stderr, self.stdout) if part and part.strip())


class OperationTimeout(ControlError):
    """Base class for a bounded poll that expired before the expected state."""

    operation = "operation"

    def __init__(self, description: str, timeout: float, log_output: str = ""):
        self.description = description
        self.timeout = timeout
        self.log_output = log_output
        message = f"{self.operation} of {description} did not complete within {timeout:g}s"
        if log_output:
            message += f"\nerror log output:\n{log_output.rstrip()}"
        super().__init__(message)


class StartTimeout(OperationTimeout):
    """Server was not confirmed running before the start timeout."""

    operation = "start"


class StopTimeout(OperationTimeout):
    """Server was still alive when the stop timeout expired."""

    operation = "stop"


class ReloadTimeout(OperationTimeout):
    """Server was not confirmed running after a graceful reload."""

    operation = "graceful reload"


class UnsupportedAction(ControlError):
    """Raised when an adapter is asked for an action it does not implement."""

    def __init__(self, action: object, adapter_name: str):
        self.action = action
        self.adapter_name = adapter_name
        super().__init__(f"{adapter_name} does not support action '{action}'")


class PortInUse(ControlError):
    """Raised when start is refused because something already listens on the port."""

    pass


class ServerValidationFailed(ControlError):
    """Raised when the server is alive but failed application-level validation."""

    pass


class ServerExited(ControlError):
    """The process exited during an operation that should have kept it running."""

    pass
