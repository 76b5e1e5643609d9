"""
Controller timing settings.

Poll interval and per-operation timeouts are inputs, not constants, so slow
daemons can be given more room. Each value can be overridden from the
environment:

- SRVCTL_POLL_INTERVAL   seconds between status checks (default 0.2)
- SRVCTL_START_TIMEOUT   seconds to wait for a start to be confirmed (default 10)
- SRVCTL_STOP_TIMEOUT    seconds to wait for the process to exit (default 10)
- SRVCTL_RELOAD_TIMEOUT  seconds to wait after a graceful reload (default 10)
- SRVCTL_PROBE_TIMEOUT   socket/HTTP timeout for server probes (default 2)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping

from srvctl.errors import ConfigurationError

ENV_PREFIX = "SRVCTL_"


@dataclass(frozen=True)
class ControllerSettings:
    """Polling and timeout settings for one controller."""

    poll_interval: float = 0.2
    start_timeout: float = 10.0
    stop_timeout: float = 10.0
    reload_timeout: float = 10.0
    probe_timeout: float = 2.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value <= 0:
                raise ConfigurationError(f"{f.name} must be positive, got {value}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ControllerSettings":
        """Build settings from SRVCTL_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigurationError: If a variable is not a positive number
        """
        env = os.environ if environ is None else environ
        values: dict[str, float] = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = env.get(key)
            if raw is None or raw == "":
                continue
            try:
                values[f.name] = float(raw)
            except ValueError:
                raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None
        return cls(**values)

    def with_overrides(self, **overrides: float | None) -> "ControllerSettings":
        """Copy with the given non-None values replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
