"""
srvctl - control long-running server daemons through their pid files.

Usage:
    from srvctl import NginxAdapter, ServerController

    nginx = ServerController(NginxAdapter(), "/etc/nginx/nginx.conf", log_dir="/var/log/nginx")
    if not nginx.is_running():
        result = nginx.start()
"""

__version__ = "0.1.0"

from srvctl.adapters import Action, DaemonAdapter, NginxAdapter, get_adapter  # noqa: E402
from srvctl.config import ControllerSettings  # noqa: E402
from srvctl.controller import ServerController  # noqa: E402
from srvctl.errors import (  # noqa: E402
    CommandExecutionFailed,
    CommandFailed,
    ConfigurationError,
    ControlError,
    CorruptPidFile,
    OperationTimeout,
    PidFileError,
    PortInUse,
    ReloadTimeout,
    ServerExited,
    ServerValidationFailed,
    StartTimeout,
    StopTimeout,
    UnreadablePidFile,
    UnsupportedAction,
)
from srvctl.status import OperationResult, ProcessStatus, ServerState, StatusKind  # noqa: E402

__all__ = [
    "Action",
    "CommandExecutionFailed",
    "CommandFailed",
    "ConfigurationError",
    "ControlError",
    "ControllerSettings",
    "CorruptPidFile",
    "DaemonAdapter",
    "NginxAdapter",
    "OperationResult",
    "OperationTimeout",
    "PidFileError",
    "PortInUse",
    "ProcessStatus",
    "ReloadTimeout",
    "ServerController",
    "ServerExited",
    "ServerState",
    "ServerValidationFailed",
    "StartTimeout",
    "StatusKind",
    "StopTimeout",
    "UnreadablePidFile",
    "UnsupportedAction",
    "get_adapter",
    "__version__",
]
