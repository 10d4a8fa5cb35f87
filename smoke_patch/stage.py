# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Scheduling of jobs.

ParallelStage runs its jobs side by side and aborts all of them once any of
them fails. PhaseSequence runs its entries, jobs or stages, one after another
and never starts an entry after one which did not succeed.
"""

from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
import threading

from smoke_patch.job import JOB_STATES, INVERSE_JOB_STATES

log = logging.getLogger(__name__)


class StageResult(object):
    """ Aggregate outcome of a ParallelStage or a PhaseSequence. """

    def __init__(self, name, state, failed_unit=None, logfile=None, logs=None):
        self.name = name
        self.state = state
        self.failed_unit = failed_unit
        self.logfile = logfile
        self.logs = logs or OrderedDict()

    @property
    def succeeded(self):
        return self.state == JOB_STATES["succeeded"]

    @property
    def state_name(self):
        return INVERSE_JOB_STATES[self.state]

    def __repr__(self):
        return "<StageResult %s, state: %s, failed_unit: %r>" % (
            self.name, self.state_name, self.failed_unit)


class _Entry(object):
    """ What ParallelStage and PhaseSequence have in common with a Job. """

    result = None

    @property
    def state(self):
        if self.result is None:
            return JOB_STATES["pending"]
        return self.result.state

    @property
    def succeeded(self):
        return self.result is not None and self.result.succeeded

    @property
    def failed_unit(self):
        return None if self.result is None else self.result.failed_unit

    @property
    def failed_logfile(self):
        return None if self.result is None else self.result.logfile


class ParallelStage(_Entry):
    """ Runs a fixed set of jobs concurrently, fail-fast. """

    def __init__(self, name, jobs):
        self.name = name
        self.jobs = list(jobs)
        self.result = None
        self._cancelled = False
        self._lock = threading.Lock()

    def __repr__(self):
        return "<ParallelStage %s, jobs: %s>" % (self.name, [j.name for j in self.jobs])

    @property
    def logs(self):
        return OrderedDict((job.name, job.logfile) for job in self.jobs)

    def run(self):
        """
        Starts all the jobs and returns the StageResult once every one of
        them is terminal. The first failing job gets all the others
        cancelled.
        """
        with self._lock:
            if self._cancelled:
                self.result = StageResult(self.name, JOB_STATES["cancelled"], logs=self.logs)
                return self.result
            for job in self.jobs:
                job.start()

        first_failed = None
        with ThreadPoolExecutor(max_workers=max(1, len(self.jobs)),
                                thread_name_prefix=self.name) as pool:
            futures = {pool.submit(job.wait): job for job in self.jobs}
            try:
                for future in as_completed(futures):
                    job = futures[future]
                    future.result()
                    if job.state == JOB_STATES["failed"] and first_failed is None:
                        first_failed = job
                        log.error("%s failed, cancelling the rest of %s" % (job.name, self.name))
                        self._cancel_jobs(exclude=job)
            except BaseException:
                # Nothing may be left running behind our back, and the pool
                # can only shut down once all the waits returned.
                self._cancel_jobs()
                raise

        self.result = self._aggregate(first_failed)
        log.info("%s finished: %s" % (self.name, self.result.state_name))
        return self.result

    def _aggregate(self, first_failed):
        if first_failed is not None:
            return StageResult(self.name, JOB_STATES["failed"], first_failed.name,
                               first_failed.logfile, self.logs)
        for job in self.jobs:
            if not job.succeeded:
                return StageResult(self.name, job.state, job.name, job.logfile, self.logs)
        return StageResult(self.name, JOB_STATES["succeeded"], logs=self.logs)

    def _cancel_jobs(self, exclude=None):
        for job in self.jobs:
            if job is not exclude:
                job.cancel()

    def cancel(self):
        """ Cancel every job of the stage which is not terminal yet. """
        with self._lock:
            self._cancelled = True
        self._cancel_jobs()


class PhaseSequence(_Entry):
    """ Runs entries strictly in order, stopping at the first one which
    does not succeed.
    """

    def __init__(self, name, entries):
        self.name = name
        self.entries = list(entries)
        self.started = []
        self.result = None
        self._current = None
        self._cancelled = False
        self._lock = threading.Lock()

    def __repr__(self):
        return "<PhaseSequence %s, entries: %s>" % (self.name, [e.name for e in self.entries])

    @property
    def logs(self):
        logs = OrderedDict()
        for entry in self.started:
            logs.update(entry.logs)
        return logs

    def run(self):
        for entry in self.entries:
            with self._lock:
                if self._cancelled:
                    break
                self._current = entry
                self.started.append(entry)

            log.info("Running %s ..." % entry.name)
            entry.run()

            if not entry.succeeded:
                state = entry.state
                if state != JOB_STATES["cancelled"]:
                    state = JOB_STATES["failed"]
                log.error("%s did not succeed, skipping the remaining %d entries of %s" % (
                    entry.name, len(self.entries) - len(self.started), self.name))
                self.result = StageResult(self.name, state, entry.failed_unit,
                                          entry.failed_logfile, self.logs)
                return self.result

        with self._lock:
            self._current = None
            if self._cancelled:
                self.result = StageResult(self.name, JOB_STATES["cancelled"], logs=self.logs)
                return self.result

        self.result = StageResult(self.name, JOB_STATES["succeeded"], logs=self.logs)
        log.info("%s finished: %s" % (self.name, self.result.state_name))
        return self.result

    def cancel(self):
        """ Cancel the running entry and never start another one. """
        with self._lock:
            self._cancelled = True
            current = self._current
        if current is not None:
            current.cancel()
