"""Tests for controller settings."""

import pytest

from srvctl.config import ControllerSettings
from srvctl.errors import ConfigurationError

pytestmark = pytest.mark.unit


def test_defaults():
    settings = ControllerSettings()
    assert settings.poll_interval == 0.2
    assert settings.start_timeout == 10.0
    assert settings.stop_timeout == 10.0
    assert settings.reload_timeout == 10.0


def test_from_env_reads_overrides():
    settings = ControllerSettings.from_env({"SRVCTL_START_TIMEOUT": "30", "SRVCTL_POLL_INTERVAL": "0.5", "UNRELATED": "x"})
    assert settings.start_timeout == 30.0
    assert settings.poll_interval == 0.5
    assert settings.stop_timeout == 10.0


def test_from_env_ignores_empty_values():
    assert ControllerSettings.from_env({"SRVCTL_STOP_TIMEOUT": ""}) == ControllerSettings()


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv("SRVCTL_RELOAD_TIMEOUT", "42")
    assert ControllerSettings.from_env().reload_timeout == 42.0


def test_from_env_rejects_non_numbers():
    with pytest.raises(ConfigurationError, match="SRVCTL_STOP_TIMEOUT"):
        ControllerSettings.from_env({"SRVCTL_STOP_TIMEOUT": "soon"})


def test_rejects_non_positive_values():
    with pytest.raises(ConfigurationError):
        ControllerSettings(poll_interval=0)


def test_with_overrides_skips_none():
    settings = ControllerSettings().with_overrides(start_timeout=3.0, stop_timeout=None)
    assert settings.start_timeout == 3.0
    assert settings.stop_timeout == 10.0
