"""Tests for pid file reading and liveness probing."""

import os
import time
from unittest.mock import patch

import psutil
import pytest

from srvctl.errors import CorruptPidFile, PidFileError, UnreadablePidFile
from srvctl.pid_file import PidFileStore, current_username


@pytest.mark.unit
class TestRead:
    def test_missing_file_is_absent(self, tmp_path):
        assert PidFileStore().read(tmp_path / "nginx.pid") is None

    def test_reads_pid_with_trailing_newline(self, tmp_path):
        pid_file = tmp_path / "nginx.pid"
        pid_file.write_text("4242\n")
        assert PidFileStore().read(pid_file) == 4242

    def test_ignores_content_after_pid(self, tmp_path):
        pid_file = tmp_path / "nginx.pid"
        pid_file.write_text("4242 extra\n")
        assert PidFileStore().read(str(pid_file)) == 4242

    @pytest.mark.parametrize("content", ["", "   \n", "abc", "-5", "0", "12x", "²\n", "①\n", "٤٢\n"])
    def test_unparseable_content_is_corrupt(self, tmp_path, content):
        pid_file = tmp_path / "nginx.pid"
        pid_file.write_text(content, encoding="utf-8")
        with pytest.raises(CorruptPidFile) as exc_info:
            PidFileStore().read(pid_file)
        assert exc_info.value.path == str(pid_file)

    def test_directory_is_unreadable(self, tmp_path):
        pid_dir = tmp_path / "nginx.pid"
        pid_dir.mkdir()
        with pytest.raises(UnreadablePidFile) as exc_info:
            PidFileStore().read(pid_dir)
        assert exc_info.value.path == str(pid_dir)
        assert isinstance(exc_info.value, PidFileError)


class TestProbeLiveness:
    def test_live_process_reports_owner(self, sleeper):
        liveness = PidFileStore().probe_liveness(sleeper.pid)
        assert liveness.alive
        assert liveness.pid == sleeper.pid
        assert liveness.owner == current_username()

    def test_current_process_is_alive(self):
        assert PidFileStore().probe_liveness(os.getpid()).alive

    def test_exited_process_is_dead(self, dead_pid):
        liveness = PidFileStore().probe_liveness(dead_pid)
        assert not liveness.alive
        assert liveness.owner is None

    def test_unreaped_child_is_dead(self, sleeper):
        sleeper.kill()
        store = PidFileStore()
        deadline = time.monotonic() + 5
        while store.probe_liveness(sleeper.pid).alive and time.monotonic() < deadline:
            time.sleep(0.01)
        # Never waited on, so the pid is still in the process table as a zombie.
        assert sleeper.returncode is None
        assert not store.probe_liveness(sleeper.pid).alive

    @pytest.mark.unit
    def test_access_denied_counts_as_alive(self):
        with patch("srvctl.pid_file.psutil.Process", side_effect=psutil.AccessDenied(pid=1)):
            liveness = PidFileStore().probe_liveness(1)
        assert liveness.alive
        assert liveness.owner is None
