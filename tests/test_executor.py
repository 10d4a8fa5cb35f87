# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os
import shutil
import tempfile
import time

import pytest

from smoke_patch.executor import CommandExecutor, EXIT_NOT_FOUND, EXIT_NOT_STARTED
from tests import pid_alive, read_log, script_cmd, wait_until, SLEEP


class TestCommandExecutor:
    def setup_method(self, test_method):
        self.tempdir = tempfile.mkdtemp()
        self.logfile = os.path.join(self.tempdir, "out.log")
        self.executor = CommandExecutor()

    def teardown_method(self, test_method):
        shutil.rmtree(self.tempdir)

    def test_run_success(self):
        result = self.executor.run(script_cmd("print('hello smoke')"), self.logfile)
        assert result.exit_code == 0
        assert result.succeeded
        assert result.duration >= 0
        log = read_log(self.logfile)
        assert "Command line:" in log
        assert "hello smoke" in log
        assert "Exit code: 0" in log

    def test_run_failure_exit_code(self):
        result = self.executor.run(script_cmd("import sys; sys.exit(5)"), self.logfile)
        assert result.exit_code == 5
        assert not result.succeeded

    def test_stderr_goes_to_the_same_log(self):
        self.executor.run(
            script_cmd("import sys; sys.stderr.write('to stderr\\n')"), self.logfile)
        assert "to stderr" in read_log(self.logfile)

    def test_log_is_appended(self):
        self.executor.run(script_cmd("print('first')"), self.logfile)
        self.executor.run(script_cmd("print('second')"), self.logfile)
        log = read_log(self.logfile)
        assert log.index("first") < log.index("second")

    def test_cwd_and_env(self):
        workdir = os.path.join(self.tempdir, "work")
        os.mkdir(workdir)
        code = "import os; print(os.getcwd()); print(os.environ['SMOKE_VALUE'])"
        result = self.executor.run(script_cmd(code), self.logfile, cwd=workdir,
                                   env={"SMOKE_VALUE": "from-env"})
        assert result.succeeded
        log = read_log(self.logfile)
        assert os.path.realpath(workdir) in log
        assert "from-env" in log

    def test_command_not_found(self):
        handle = self.executor.start(["/nonexistent/smoke-tool", "-j", "3"], self.logfile)
        assert handle.done
        result = handle.wait()
        assert result.exit_code == EXIT_NOT_FOUND
        assert "not found" in result.error
        assert "not found" in read_log(self.logfile)

    def test_log_not_writable(self):
        logfile = os.path.join(self.tempdir, "missing", "out.log")
        result = self.executor.run(script_cmd("print('never')"), logfile)
        assert result.exit_code == EXIT_NOT_STARTED
        assert "Cannot write log" in result.error

    def test_wait_is_idempotent(self):
        handle = self.executor.start(script_cmd("print('once')"), self.logfile)
        first = handle.wait()
        second = handle.wait()
        assert first is second
        assert read_log(self.logfile).count("once") == 1

    def test_kill_running(self):
        handle = self.executor.start(script_cmd(SLEEP), self.logfile)
        start = time.time()
        handle.kill()
        result = handle.wait()
        assert result.exit_code < 0
        assert time.time() - start < 30

    def test_kill_after_exit_is_noop(self):
        handle = self.executor.start(script_cmd("print('done')"), self.logfile)
        result = handle.wait()
        handle.kill()
        assert handle.wait() is result
        assert result.exit_code == 0

    @pytest.mark.skipif(not os.path.isdir("/proc/self"), reason="needs /proc")
    def test_kill_takes_down_children(self):
        pidfile = os.path.join(self.tempdir, "child.pid")
        code = (
            "import subprocess, sys, time\n"
            "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
            "open(%r, 'w').write(str(child.pid))\n"
            "time.sleep(60)\n" % pidfile)
        handle = self.executor.start(script_cmd(code), self.logfile)
        assert wait_until(lambda: os.path.exists(pidfile) and open(pidfile).read())
        with open(pidfile) as f:
            child_pid = int(f.read())
        assert pid_alive(child_pid)

        handle.kill()
        handle.wait()
        assert wait_until(lambda: not pid_alive(child_pid))
