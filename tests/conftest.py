"""Pytest configuration and fixtures for srvctl tests.

Real processes stand in for daemons: a `sleeper` is a python process that
ignores SIGHUP (as a reloading master would) and otherwise just waits to be
killed. The `fake_nginx` fixture installs an executable that speaks enough of
nginx's command line to be driven end to end.
"""

import os
import signal
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest

SLEEPER_CODE = "import signal, time; signal.signal(signal.SIGHUP, signal.SIG_IGN); print('ready', flush=True); time.sleep(120)"

FAKE_NGINX = '''\
#!{python}
"""Minimal stand-in for the nginx binary, driven by markers in the conf file."""
import os
import signal
import subprocess
import sys
from pathlib import Path

args = sys.argv[1:]
conf = Path(args[args.index("-c") + 1])
state_dir = conf.parent
pid_file = state_dir / "nginx.pid"
error_log = state_dir / "error.log"
text = conf.read_text()


def log(message):
    with open(error_log, "a") as f:
        f.write(message + "\\n")


def read_pid():
    try:
        return int(pid_file.read_text().strip())
    except (OSError, ValueError):
        return None


if "-t" in args:
    if "broken" in text:
        sys.stderr.write(f"nginx: [emerg] unknown directive \\"brokn\\" in {{conf}}:3\\n")
        sys.exit(1)
    sys.exit(0)

if "-s" in args:
    sig = args[args.index("-s") + 1]
    pid = read_pid()
    if pid is None:
        sys.stderr.write(f"nginx: [error] open() \\"{{pid_file}}\\" failed (2: No such file or directory)\\n")
        sys.exit(1)
    if sig in ("stop", "quit"):
        log(f"signal process started: {{sig}}")
        os.kill(pid, signal.SIGTERM)
        pid_file.unlink()
    elif sig == "reload":
        log("signal process started: reload")
        if "crash-on-reload" in text:
            os.kill(pid, signal.SIGTERM)
        else:
            os.kill(pid, signal.SIGHUP)
    elif sig == "reopen":
        log("reopening logs")
    sys.exit(0)

if "fail-start" in text:
    log("[emerg] bind() to 0.0.0.0:80 failed (98: Address already in use)")
    sys.exit(1)
if "never-starts" in text:
    log("[alert] worker process exited on signal 11")
    sys.exit(0)

proc = subprocess.Popen(
    [sys.executable, "-c", {sleeper!r}],
    stdin=subprocess.DEVNULL,
    stdout=subprocess.PIPE,
    stderr=subprocess.DEVNULL,
    start_new_session=True,
)
proc.stdout.readline()
pid_file.write_text(f"{{proc.pid}}\\n")
log("start worker processes")
'''


def _kill_quietly(pid: int) -> None:
    try:
        os.kill(pid, signal.SIGKILL)
    except OSError:
        pass


@pytest.fixture
def spawn_sleeper():
    """Factory for live processes to point pid files at. All are killed on teardown."""
    procs: list[subprocess.Popen] = []

    def spawn() -> subprocess.Popen:
        proc = subprocess.Popen(
            [sys.executable, "-c", SLEEPER_CODE],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        procs.append(proc)
        return proc

    yield spawn
    for proc in procs:
        if proc.poll() is None:
            proc.kill()
        proc.wait()


@pytest.fixture
def sleeper(spawn_sleeper):
    """A live process to point pid files at."""
    return spawn_sleeper()


@pytest.fixture
def dead_pid() -> int:
    """Pid of a process that has already exited and been reaped."""
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    return proc.pid


@dataclass
class NginxEnv:
    """Files of a fake nginx installation living in one directory."""

    binary: Path
    conf_file: Path
    pid_file: Path
    error_log: Path
    log_dir: Path

    def write_conf(self, *markers: str) -> None:
        body = "events {}\nhttp {}\n" + "".join(f"# {marker}\n" for marker in markers)
        self.conf_file.write_text(body)

    def pid(self) -> Optional[int]:
        try:
            return int(self.pid_file.read_text().strip())
        except (OSError, ValueError):
            return None


@pytest.fixture
def fake_nginx(tmp_path):
    """An executable fake nginx whose state lives next to its conf file."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    binary = bin_dir / "nginx"
    binary.write_text(FAKE_NGINX.format(python=sys.executable, sleeper=SLEEPER_CODE))
    binary.chmod(0o755)

    state_dir = tmp_path / "nginx"
    state_dir.mkdir()
    env = NginxEnv(
        binary=binary,
        conf_file=state_dir / "nginx.conf",
        pid_file=state_dir / "nginx.pid",
        error_log=state_dir / "error.log",
        log_dir=state_dir,
    )
    env.write_conf()
    yield env

    pid = env.pid()
    if pid is not None:
        _kill_quietly(pid)


def pytest_configure(config):
    """Register markers when running without the pyproject settings."""
    config.addinivalue_line("markers", "unit: fast tests of a single module")
    config.addinivalue_line("markers", "integration: tests that spawn real processes against a fake daemon")
