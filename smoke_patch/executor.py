# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Launching of the external programs doing the real work.

Every program runs in the background in its own session, so that killing it
also takes down everything it spawned, and appends its combined output to a
log file. The caller gets an ExecutionHandle it can wait on or kill.
"""

import logging
import os
import signal
import threading
import time

import sh

log = logging.getLogger(__name__)

# Exit codes reported for programs which could not be started at all
EXIT_NOT_FOUND = 127
EXIT_NOT_STARTED = 1


class CommandResult(object):
    """ Outcome of a single program invocation. """

    def __init__(self, exit_code, duration, error=None):
        self.exit_code = exit_code
        self.duration = duration
        self.error = error

    @property
    def succeeded(self):
        return self.exit_code == 0

    @property
    def killed(self):
        """ Whether the program was ended by SIGKILL, the way kill() ends it. """
        return self.exit_code == -signal.SIGKILL

    def __repr__(self):
        return "<CommandResult exit_code: %r, duration: %.1fs, error: %r>" % (
            self.exit_code, self.duration, self.error)


class ExecutionHandle(object):
    """ Handle of a started program.

    A handle created without a running process is already complete, which is
    how start failures are reported.
    """

    def __init__(self, cmd, process=None, logfile=None, result=None):
        self.cmd = cmd
        self._process = process
        self._logfile = logfile
        self._result = result
        self._started = time.time()
        self._lock = threading.Lock()

    @classmethod
    def failed(cls, cmd, logfile, exit_code, error):
        """ Create a complete handle for a program which never ran. """
        handle = cls(cmd, logfile=logfile, result=CommandResult(exit_code, 0.0, error))
        handle._close_log(error)
        return handle

    @property
    def pid(self):
        if self._process is None:
            return None
        return self._process.pid

    @property
    def done(self):
        return self._result is not None

    @property
    def exited(self):
        """ Whether the program is gone, even if nobody waited for it yet. """
        if self._result is not None or self._process is None:
            return True
        return not self._process.is_alive()

    def wait(self):
        """ Block until the program exits and return its CommandResult.

        Calling it again returns the very same result.
        """
        with self._lock:
            if self._result is not None:
                return self._result

            try:
                self._process.wait()
                exit_code = 0
            except sh.ErrorReturnCode as e:
                # Signals end up here too, with a negative exit code
                exit_code = e.exit_code
            duration = time.time() - self._started

            self._result = CommandResult(exit_code, duration)
            self._close_log("Exit code: %d, duration: %.1fs" % (exit_code, duration))
            log.debug("%r finished: %r" % (self.cmd[0], self._result))
            return self._result

    def kill(self):
        """ Kill the program together with its whole process group.

        Does nothing when the program has already finished.
        """
        if self._result is not None or self._process is None:
            return

        # The program is the leader of its own session, so its pid is
        # also the id of the process group its children live in.
        try:
            os.killpg(self._process.pid, signal.SIGKILL)
            log.debug("Killed process group %d of %r" % (self._process.pid, self.cmd[0]))
        except OSError as e:
            log.debug("Process group %d of %r already gone: %s" % (
                self._process.pid, self.cmd[0], e))

    def _close_log(self, footer):
        if self._logfile is None:
            return
        try:
            self._logfile.write(("%s\n" % footer).encode("utf-8"))
        finally:
            self._logfile.close()
            self._logfile = None


class CommandExecutor(object):
    """ Starts external programs with their output appended to a log. """

    def start(self, cmd, logfile, cwd=None, env=None):
        """
        :param list cmd: program followed by its arguments
        :param str logfile: log the combined output is appended to
        :param str cwd: working directory of the program
        :param dict env: environment overrides on top of os.environ
        :returns: ExecutionHandle -- complete already when the program
            could not be started
        """
        cmd = [str(c) for c in cmd]

        try:
            fd = open(logfile, "ab")
        except (IOError, OSError) as e:
            log.error("Cannot write log %s: %s" % (logfile, e))
            return ExecutionHandle(cmd, result=CommandResult(
                EXIT_NOT_STARTED, 0.0, "Cannot write log %s: %s" % (logfile, e)))

        fd.write(("Command line:\n%s\n" % " ".join(cmd)).encode("utf-8"))
        fd.flush()

        try:
            program = sh.Command(cmd[0])
        except sh.CommandNotFound:
            log.error("Command %r not found" % cmd[0])
            return ExecutionHandle.failed(
                cmd, fd, EXIT_NOT_FOUND, "Command %s not found" % cmd[0])

        full_env = os.environ.copy()
        full_env.update(env or {})

        try:
            process = program(
                *cmd[1:],
                _bg=True,
                _bg_exc=False,
                _out=fd,
                _err_to_out=True,
                _tty_out=False,
                _new_session=True,
                _cwd=cwd,
                _env=full_env)
        except (sh.ForkException, OSError) as e:
            log.error("Failed to start %r: %s" % (cmd[0], e))
            return ExecutionHandle.failed(cmd, fd, EXIT_NOT_STARTED, str(e))

        log.debug("Started %r (pid %d), log %s" % (" ".join(cmd), process.pid, logfile))
        return ExecutionHandle(cmd, process=process, logfile=fd)

    def run(self, cmd, logfile, cwd=None, env=None):
        """ Run a program to completion and return its CommandResult. """
        return self.start(cmd, logfile, cwd=cwd, env=env).wait()
