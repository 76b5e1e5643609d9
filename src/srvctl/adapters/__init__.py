"""
Daemon adapters.

Each controllable daemon kind has one adapter. Look adapters up by name with
get_adapter(); the CLI uses this to turn `--adapter nginx` into an instance.
"""

from srvctl.adapters.base import Action, ArgumentBuilder, DaemonAdapter
from srvctl.adapters.nginx import NginxAdapter
from srvctl.errors import ConfigurationError

_ADAPTERS: dict[str, type[DaemonAdapter]] = {
    NginxAdapter.name: NginxAdapter,
}


def available_adapters() -> list[str]:
    """Names of all registered adapters."""
    return sorted(_ADAPTERS)


def get_adapter(name: str, binary_path: str | None = None) -> DaemonAdapter:
    """Instantiate an adapter by name.

    Raises:
        ConfigurationError: If no adapter with that name is registered
    """
    try:
        adapter_class = _ADAPTERS[name]
    except KeyError:
        raise ConfigurationError(f"unknown adapter '{name}' (available: {', '.join(available_adapters())})") from None
    return adapter_class(binary_path=binary_path)


__all__ = [
    "Action",
    "ArgumentBuilder",
    "DaemonAdapter",
    "NginxAdapter",
    "available_adapters",
    "get_adapter",
]
