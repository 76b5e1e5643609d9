"""Tests for the srvctl command line."""

import sys

import pytest

from srvctl.cli import ControlArgs, build_controller, build_parser, main

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake nginx relies on POSIX signals and shebangs")


def _args(fake_nginx, *extra):
    return [
        "--conf-file",
        str(fake_nginx.conf_file),
        "--binary-path",
        str(fake_nginx.binary),
        "--log-dir",
        str(fake_nginx.log_dir),
        "--poll-interval",
        "0.05",
        *extra,
    ]


@pytest.mark.unit
def test_help_exits_zero(capsys):
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(["--help"])
    assert exc_info.value.code == 0
    assert "graceful-stop" in capsys.readouterr().out


@pytest.mark.unit
def test_conf_file_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["start"])


@pytest.mark.unit
def test_missing_conf_file_exits_2(tmp_path, capsys):
    assert main(["--conf-file", str(tmp_path / "missing.conf"), "--pid-file", str(tmp_path / "x.pid"), "status"]) == 2
    assert "no such conf file" in capsys.readouterr().err


@pytest.mark.unit
def test_build_controller_applies_timeouts(tmp_path):
    conf = tmp_path / "nginx.conf"
    conf.write_text("events {}\n")
    controller = build_controller(ControlArgs(action="status", conf_file=conf, pid_file=tmp_path / "nginx.pid", start_timeout=42.0, port=8080))
    assert controller.settings.start_timeout == 42.0
    assert controller.process.port == 8080
    assert controller.log.name == "srvctl.nginx"


@posix_only
def test_check_config(fake_nginx, capsys):
    assert main([*_args(fake_nginx), "check-config"]) == 0
    assert "syntax ok" in capsys.readouterr().out

    fake_nginx.write_conf("broken")
    assert main([*_args(fake_nginx), "check-config"]) == 1
    assert "unknown directive" in capsys.readouterr().err


@posix_only
def test_start_status_stop(fake_nginx, capsys):
    assert main([*_args(fake_nginx), "status"]) == 1
    assert "not running" in capsys.readouterr().out

    assert main([*_args(fake_nginx), "start"]) == 0
    assert "start succeeded" in capsys.readouterr().out

    assert main([*_args(fake_nginx), "status"]) == 0
    assert f"running (pid {fake_nginx.pid()})" in capsys.readouterr().out

    assert main([*_args(fake_nginx), "stop"]) == 0
    assert fake_nginx.pid() is None
