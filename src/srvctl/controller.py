"""
Server lifecycle controller.

ServerController starts, stops and gracefully reloads a daemon it does not
own. The daemon is found only through its pid file, and every decision is made
from a fresh read of that file and of the process table:

    validate preconditions -> issue command -> poll for confirmation -> classify

Polling is bounded by per-operation timeouts from ControllerSettings. When an
operation fails, whatever the daemon wrote to its error log since just before
the command was issued is attached to the result.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable

from srvctl import probes
from srvctl.adapters.base import Action, DaemonAdapter
from srvctl.command_runner import CommandOutcome, CommandRunner
from srvctl.config import ControllerSettings
from srvctl.errors import (
    ControlError,
    PidFileError,
    PortInUse,
    ReloadTimeout,
    ServerExited,
    ServerValidationFailed,
    StartTimeout,
    StopTimeout,
    UnsupportedAction,
)
from srvctl.log_watch import LogTailWatcher, LogWatchCheckpoint
from srvctl.pid_file import PidFileStore, current_username
from srvctl.process import ControlledProcess
from srvctl.status import OperationResult, ProcessStatus, ServerState, StatusKind

module_logger = logging.getLogger(__name__)

ServerValidator = Callable[["ServerController"], bool]


class ServerController:
    """Controls one externally managed daemon through its adapter.

    Example:
        controller = ServerController(NginxAdapter(), "/etc/nginx/nginx.conf", pid_file="/run/nginx.pid")
        result = controller.start()
        if not result:
            print(result.reason)
    """

    def __init__(
        self,
        adapter: DaemonAdapter,
        config_file: Path | str,
        *,
        pid_file: Path | str | None = None,
        log_dir: Path | str | None = None,
        error_log: Path | str | None = None,
        bind_address: str | None = None,
        port: int | None = None,
        user: str | None = None,
        validate_url: str | None = None,
        validate_regex: str | None = None,
        validator: ServerValidator | None = None,
        settings: ControllerSettings | None = None,
        logger: logging.Logger | None = None,
        pid_store: PidFileStore | None = None,
        log_watcher: LogTailWatcher | None = None,
        runner: CommandRunner | None = None,
    ):
        """Initialize the controller.

        Args:
            adapter: Command adapter for the daemon kind
            config_file: Daemon config file (must exist)
            pid_file: Pid file path (defaults to the adapter's choice)
            log_dir: Daemon log directory, used for adapter defaults
            error_log: Log file reported on failures
            bind_address: Address the daemon listens on
            port: Port the daemon listens on; when set, start and graceful
                also wait for the port to accept connections
            user: Expected owner of the daemon process (defaults to the
                current user)
            validate_url: URL fetched to validate a running server
            validate_regex: Pattern the validate_url response must match
            validator: Extra application-level check run after liveness is
                confirmed
            settings: Poll interval and timeouts
            logger: Logger for this controller's diagnostics
            pid_store: Pid file reader (injectable for tests)
            log_watcher: Log tail watcher (injectable for tests)
            runner: Command runner (injectable for tests)

        Raises:
            ConfigurationError: If the config file does not exist or no pid
                file path can be determined
        """
        self.adapter = adapter
        self.process = ControlledProcess.create(
            adapter,
            config_file,
            pid_file=pid_file,
            log_dir=log_dir,
            error_log=error_log,
            bind_address=bind_address,
            port=port,
            user=user,
            validate_url=validate_url,
            validate_regex=validate_regex,
        )
        self.settings = settings or ControllerSettings()
        self.validator = validator
        self.log = logger or module_logger
        self.pid_store = pid_store or PidFileStore()
        self.log_watcher = log_watcher or LogTailWatcher()
        self.runner = runner or CommandRunner()
        self.expected_user = self.process.user or current_username()

    @property
    def description(self) -> str:
        return self.process.description

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def status(self) -> ProcessStatus:
        """Read the pid file and probe the process it names."""
        try:
            pid = self.pid_store.read(self.process.pid_file)
        except PidFileError as e:
            return ProcessStatus.invalid(str(e))

        if pid is None:
            return ProcessStatus.not_running()

        liveness = self.pid_store.probe_liveness(pid)
        if not liveness.alive:
            return ProcessStatus.invalid("stale pid file", pid=pid)

        if liveness.owner and self.expected_user and liveness.owner != self.expected_user:
            return ProcessStatus.running_as(pid, liveness.owner)
        return ProcessStatus.running(pid, liveness.owner)

    def is_running(self) -> bool:
        return self.status().is_running

    def is_listening(self) -> bool:
        """True if a port is configured and something accepts connections on it."""
        if self.process.port is None:
            return False
        return probes.is_listening(self.process.bind_address, self.process.port, self.settings.probe_timeout)

    def status_as_string(self) -> str:
        status = self.status()
        text = f"{self.description} is {status}"
        if self.process.port is not None:
            where = f"{self.process.bind_address}:{self.process.port}"
            text += f", listening on {where}" if self.is_listening() else f", not listening on {where}"
        return text

    def validate_server(self) -> bool:
        """Application-level health check, independent of pid liveness.

        Runs the validator hook (if any), then fetches validate_url (if any).
        Returns True when nothing is configured.
        """
        if self.validator is not None and not self.validator(self):
            self.log.warning(f"Validator rejected {self.description}")
            return False
        if self.process.validate_url:
            return probes.validate_url(self.process.validate_url, self.process.validate_regex, self.settings.probe_timeout)
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def check_config_syntax(self) -> bool:
        """Run the adapter's config check. Silent on success.

        Raises:
            CommandFailed: With the captured output, if the check fails
            CommandExecutionFailed: If the check could not be launched
        """
        self._run(Action.CHECK_CONFIG)
        return True

    def start(self) -> OperationResult:
        """Start the server unless it is already running."""
        return self._start("start", check_config=True)

    def stop(self) -> OperationResult:
        """Stop the server unless it is already stopped."""
        operation = "stop"
        try:
            pid = self.pid_store.read(self.process.pid_file)
        except PidFileError as e:
            return self._failure(operation, e)

        if pid is None:
            self.log.info(f"{self.description} is not running")
            return OperationResult(operation, True, ServerState.STOPPED, ProcessStatus.not_running())

        if not self.pid_store.probe_liveness(pid).alive:
            self.log.info(f"{self.description} is not running (stale pid file {self.process.pid_file}, pid {pid})")
            return OperationResult(operation, True, ServerState.STOPPED, ProcessStatus.invalid("stale pid file", pid=pid))

        self.log.info(f"{ServerState.STOPPING.value} {self.description} (pid {pid})")
        checkpoint = self._checkpoint_error_log()
        try:
            self._run(Action.STOP)
        except UnsupportedAction:
            raise
        except ControlError as e:
            return self._failure(operation, e, checkpoint)

        if self._wait_for(lambda: not self.pid_store.probe_liveness(pid).alive, self.settings.stop_timeout):
            self.log.info(f"{self.description} stopped")
            return OperationResult(operation, True, ServerState.STOPPED, self.status())

        output = self._log_delta(checkpoint)
        return self._failure(operation, StopTimeout(self.description, self.settings.stop_timeout, output), log_output=output)

    def restart(self) -> OperationResult:
        """Stop then start. A running server's config is checked before it is stopped."""
        operation = "restart"
        status = self.status()
        if status.is_running:
            try:
                self.check_config_syntax()
            except UnsupportedAction:
                raise
            except ControlError as e:
                return self._failure(operation, e)
            stopped = self.stop()
            if not stopped:
                return replace(stopped, operation=operation)
        return self._start(operation, check_config=not status.is_running)

    def graceful(self) -> OperationResult:
        """Gracefully reload a running server, or start it if it is not running.

        The reload must keep the same master pid alive. A failure to dispatch
        the reload command is recorded in `dispatch_error` but does not abort:
        the daemon may have reloaded anyway, so the post-condition decides.
        """
        operation = "graceful"
        status = self.status()
        if not status.is_running:
            self.log.info(f"{self.description} is not running, starting it")
            return self._start(operation, check_config=True)

        self._warn_if_different_user(status)
        try:
            self.check_config_syntax()
        except UnsupportedAction:
            raise
        except ControlError as e:
            return self._failure(operation, e)

        pid = status.pid
        checkpoint = self._checkpoint_error_log()
        dispatch_error = None
        self.log.info(f"Gracefully reloading {self.description} (pid {pid})")
        try:
            self._run(Action.RELOAD)
        except UnsupportedAction:
            raise
        except ControlError as e:
            self.log.error(f"error during graceful restart of {self.description}: {e}")
            dispatch_error = e

        def same_pid_dead() -> bool:
            return not self.pid_store.probe_liveness(pid).alive

        if self._wait_for(lambda: self._is_active(expected_pid=pid), self.settings.reload_timeout, abort=same_pid_dead):
            return self._confirm(operation, checkpoint, dispatch_error)

        output = self._log_delta(checkpoint)
        if same_pid_dead():
            error: ControlError = ServerExited(f"{self.description} (pid {pid}) exited during graceful reload")
        else:
            error = ReloadTimeout(self.description, self.settings.reload_timeout, output)
        return self._failure(operation, error, log_output=output, dispatch_error=dispatch_error)

    def graceful_stop(self) -> OperationResult:
        """Ask the server to finish in-flight work and exit, then complete via stop()."""
        operation = "graceful-stop"
        status = self.status()
        if not status.is_running:
            return replace(self.stop(), operation=operation)

        pid = status.pid
        dispatch_error = None
        self.log.info(f"Gracefully stopping {self.description} (pid {pid})")
        try:
            self._run(Action.GRACEFUL_STOP)
        except UnsupportedAction:
            raise
        except ControlError as e:
            self.log.warning(f"Graceful stop command failed, falling back to stop: {e}")
            dispatch_error = e
        else:
            self._wait_for(lambda: not self.pid_store.probe_liveness(pid).alive, self.settings.stop_timeout)

        return replace(self.stop(), operation=operation, dispatch_error=dispatch_error)

    def reopen_logs(self) -> OperationResult:
        """Tell a running server to reopen its log files."""
        operation = "reopen-log"
        status = self.status()
        if not status.is_running:
            return self._failure(operation, ControlError(f"{self.description} is not running"))
        try:
            self._run(Action.REOPEN_LOG)
        except UnsupportedAction:
            raise
        except ControlError as e:
            return self._failure(operation, e)
        return OperationResult(operation, True, ServerState.RUNNING, self.status())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start(self, operation: str, check_config: bool) -> OperationResult:
        status = self.status()
        if status.is_running:
            self.log.info(f"{self.description} already running (pid {status.pid})")
            return OperationResult(operation, True, ServerState.RUNNING, status)
        if status.kind == StatusKind.INVALID:
            self.log.warning(f"{status.reason} for {self.description}, starting anyway")

        if self.is_listening():
            return self._failure(
                operation,
                PortInUse(f"cannot start {self.description}: no running server found but something is listening on {self.process.bind_address}:{self.process.port}"),
            )

        self.log.info(f"{ServerState.STARTING.value} {self.description}")
        checkpoint = self._checkpoint_error_log()
        try:
            if check_config:
                self.check_config_syntax()
            self._run(Action.START)
        except UnsupportedAction:
            raise
        except ControlError as e:
            return self._failure(operation, e, checkpoint)

        if self._wait_for(self._is_active, self.settings.start_timeout):
            return self._confirm(operation, checkpoint)

        output = self._log_delta(checkpoint)
        return self._failure(operation, StartTimeout(self.description, self.settings.start_timeout, output), log_output=output)

    def _confirm(self, operation: str, checkpoint: LogWatchCheckpoint | None, dispatch_error: ControlError | None = None) -> OperationResult:
        """Liveness is confirmed; run application-level validation."""
        self.log.info(self.status_as_string())
        if not self.validate_server():
            error = ServerValidationFailed(f"{self.description} is running but failed validation")
            return self._failure(operation, error, checkpoint, dispatch_error=dispatch_error)

        status = self.status()
        self.log.info(f"{self.description} is now running (pid {status.pid})")
        return OperationResult(operation, True, ServerState.RUNNING, status, dispatch_error=dispatch_error)

    def _is_active(self, expected_pid: int | None = None) -> bool:
        status = self.status()
        if not status.is_running:
            return False
        if expected_pid is not None and status.pid != expected_pid:
            return False
        if self.process.port is not None and not self.is_listening():
            return False
        return True

    def _wait_for(self, condition: Callable[[], bool], timeout: float, abort: Callable[[], bool] | None = None) -> bool:
        """Poll condition every poll_interval until true or timeout.

        Returns:
            True if the condition was met, False on timeout or abort
        """
        deadline = time.monotonic() + timeout
        while True:
            if condition():
                return True
            if abort is not None and abort():
                return False
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            time.sleep(min(self.settings.poll_interval, remaining))

    def _run(self, action: Action) -> CommandOutcome:
        command = self.adapter.build_command(action, self.process.config_file)
        return self.runner.run(command).raise_for_status()

    def _checkpoint_error_log(self) -> LogWatchCheckpoint | None:
        if self.process.error_log is None:
            return None
        return self.log_watcher.checkpoint(self.process.error_log)

    def _log_delta(self, checkpoint: LogWatchCheckpoint | None) -> str:
        if checkpoint is None:
            return ""
        return self.log_watcher.delta(checkpoint)

    def _failure(
        self,
        operation: str,
        error: ControlError,
        checkpoint: LogWatchCheckpoint | None = None,
        log_output: str | None = None,
        dispatch_error: ControlError | None = None,
    ) -> OperationResult:
        if log_output is None:
            log_output = self._log_delta(checkpoint)
        self.log.error(f"{operation} of {self.description} failed: {error}")
        if log_output and log_output.strip() not in str(error):
            self.log.error(f"error log output:\n{log_output.rstrip()}")
        return OperationResult(
            operation,
            False,
            ServerState.FAILED,
            self.status(),
            error=error,
            dispatch_error=dispatch_error,
            log_output=log_output,
        )

    def _warn_if_different_user(self, status: ProcessStatus) -> None:
        if status.kind == StatusKind.RUNNING_DIFFERENT_USER:
            self.log.warning(f"pid {status.pid} is owned by {status.user}, not {self.expected_user}; control commands may fail")
