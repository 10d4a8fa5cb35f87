# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" A named unit of work wrapping a single external program invocation. """

import logging
import threading

from smoke_patch.executor import CommandExecutor, CommandResult

log = logging.getLogger(__name__)


JOB_STATES = {
    # Created, the program was not started yet.
    "pending": 0,
    # The program is running.
    "running": 1,
    # The program exited with 0.
    "succeeded": 2,
    # The program exited with anything else or could not be started.
    "failed": 3,
    # Stopped on request, either before it started or by killing it.
    "cancelled": 4,
}

INVERSE_JOB_STATES = {v: k for k, v in JOB_STATES.items()}

TERMINAL_STATES = (
    JOB_STATES["succeeded"],
    JOB_STATES["failed"],
    JOB_STATES["cancelled"],
)


class Job(object):
    """ A single build, lint or test invocation.

    Transitions are driven only by the program exiting or by cancel():

        pending -> running -> succeeded | failed | cancelled
        pending -> cancelled
    """

    def __init__(self, name, cmd, logfile, cwd=None, env=None, parallelism=None,
                 executor=None):
        """
        :param str name: identity of the job, also the slot it occupies
        :param list cmd: program followed by its arguments
        :param str logfile: log the program output is appended to
        :param str cwd: working directory of the program
        :param dict env: environment overrides
        :param int parallelism: parallelism hint already passed to the
            program in cmd, kept for reporting
        :param CommandExecutor executor: executor starting the program
        """
        self.name = name
        self.cmd = list(cmd)
        self.logfile = logfile
        self.cwd = cwd
        self.env = env or {}
        self.parallelism = parallelism
        self.executor = executor or CommandExecutor()

        self.result = None
        self._state = JOB_STATES["pending"]
        self._handle = None
        self._cancel_requested = False
        self._lock = threading.Lock()

    def __repr__(self):
        return "<Job %s, state: %s>" % (self.name, self.state_name)

    @property
    def state(self):
        return self._state

    @property
    def state_name(self):
        return INVERSE_JOB_STATES[self._state]

    @property
    def terminal(self):
        return self._state in TERMINAL_STATES

    @property
    def succeeded(self):
        return self._state == JOB_STATES["succeeded"]

    @property
    def failed_unit(self):
        return None if self.succeeded else self.name

    @property
    def failed_logfile(self):
        return None if self.succeeded else self.logfile

    @property
    def pid(self):
        return None if self._handle is None else self._handle.pid

    @property
    def logs(self):
        return {self.name: self.logfile}

    def _transition(self, state):
        log.info("Job %s: %s -> %s" % (
            self.name, INVERSE_JOB_STATES[self._state], INVERSE_JOB_STATES[state]))
        self._state = state

    def start(self):
        """ Start the program. A job cancelled while pending stays cancelled. """
        with self._lock:
            if self._state == JOB_STATES["cancelled"]:
                log.debug("Not starting cancelled job %s" % self.name)
                return
            if self._state != JOB_STATES["pending"]:
                raise ValueError("Cannot start job %s in state %s" % (self.name, self.state_name))

            log.info("Starting %s ..." % self.name)
            self._handle = self.executor.start(
                self.cmd, self.logfile, cwd=self.cwd, env=self.env)
            self._transition(JOB_STATES["running"])

    def wait(self):
        """ Block until the program exits and return its CommandResult.

        Returns the stored result right away on a terminal job.
        """
        if self.terminal:
            return self.result
        if self._handle is None:
            raise ValueError("Cannot wait for job %s which was not started" % self.name)

        result = self._handle.wait()
        with self._lock:
            if self._state == JOB_STATES["running"]:
                self.result = result
                if result.succeeded:
                    self._transition(JOB_STATES["succeeded"])
                elif self._cancel_requested and result.killed:
                    self._transition(JOB_STATES["cancelled"])
                else:
                    log.error("%s failed with error %s, see %s" % (
                        self.name, result.exit_code, self.logfile))
                    self._transition(JOB_STATES["failed"])
        return self.result

    def run(self):
        """ Start the program and wait for it. """
        self.start()
        return self.wait()

    def cancel(self):
        """ Cancel the job, killing its program when it runs.

        Cancelling a terminal job does not change anything, neither does
        cancelling one whose program already exited on its own: that one
        ends up with the state its exit code gives.
        """
        with self._lock:
            if self.terminal:
                return
            if self._state == JOB_STATES["pending"]:
                self.result = CommandResult(None, 0.0, "Cancelled before start")
                self._transition(JOB_STATES["cancelled"])
                return
            handle = self._handle
            if not handle.exited:
                self._cancel_requested = True

        if self._cancel_requested:
            log.info("Cancelling %s ..." % self.name)
            handle.kill()
        self.wait()
