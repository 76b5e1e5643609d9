"""
Description of the controlled daemon instance.

Everything the controller needs to know about the daemon is resolved once,
here, when the controller is built: the config file is checked and made
absolute, and defaults the adapter supplies (pid file, error log, bind
address) are filled in. The result is immutable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from srvctl.adapters.base import DaemonAdapter
from srvctl.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlledProcess:
    """Resolved configuration of one daemon instance.

    Attributes:
        name: Adapter name (e.g. "nginx")
        binary_path: Daemon executable
        config_file: Canonical absolute path to the daemon config file
        pid_file: Pid file written by the daemon
        bind_address: Host the daemon listens on
        port: Port the daemon listens on, if known
        log_dir: Directory holding the daemon's logs
        error_log: Log file reported when operations fail
        user: Expected owner of the daemon process
        validate_url: URL fetched to validate a running server
        validate_regex: Pattern the validate_url response must match
    """

    name: str
    binary_path: str
    config_file: Path
    pid_file: Path
    bind_address: str
    port: int | None = None
    log_dir: Path | None = None
    error_log: Path | None = None
    user: str | None = None
    validate_url: str | None = None
    validate_regex: str | None = None

    @property
    def description(self) -> str:
        return f"{self.name} server ({self.config_file})"

    @classmethod
    def create(
        cls,
        adapter: DaemonAdapter,
        config_file: Path | str,
        pid_file: Path | str | None = None,
        log_dir: Path | str | None = None,
        error_log: Path | str | None = None,
        bind_address: str | None = None,
        port: int | None = None,
        user: str | None = None,
        validate_url: str | None = None,
        validate_regex: str | None = None,
    ) -> "ControlledProcess":
        """Validate inputs and derive defaults.

        Raises:
            ConfigurationError: If the config file is missing or not a regular
                file, or no pid file path is given and none can be derived
        """
        if not config_file:
            raise ConfigurationError("a config file is required")
        conf_path = Path(config_file)
        if not conf_path.is_file():
            raise ConfigurationError(f"no such conf file '{conf_path}'")
        conf_path = conf_path.resolve()

        log_path = Path(log_dir) if log_dir else None

        if pid_file:
            pid_path = Path(pid_file)
        else:
            derived = adapter.default_pid_file_path(log_path)
            if derived is None:
                raise ConfigurationError(f"no pid file given for {adapter.name} and none could be derived (set pid_file or an existing log_dir)")
            pid_path = derived

        if error_log:
            error_log_path: Path | None = Path(error_log)
        else:
            error_log_path = adapter.default_error_log(log_path)

        if port is not None and not 0 < port < 65536:
            raise ConfigurationError(f"invalid port {port}")

        process = cls(
            name=adapter.name,
            binary_path=adapter.resolve_binary_path(),
            config_file=conf_path,
            pid_file=pid_path.absolute(),
            bind_address=bind_address or adapter.default_bind_address(),
            port=port,
            log_dir=log_path,
            error_log=error_log_path.absolute() if error_log_path else None,
            user=user,
            validate_url=validate_url,
            validate_regex=validate_regex,
        )
        logger.debug(f"Resolved {process}")
        return process
