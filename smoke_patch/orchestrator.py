# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
The top-level driver of a smoke run.

    provision -> [configure] -> {build, lint} -> unittests -> ... -> sharding

Build and lint run side by side while the auxiliary executables get copied.
Every failure stops the run, cancels whatever is still running and ends up
in the RunResult instead of escaping as an exception.
"""

from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
import logging
import os
import shutil
import threading

from smoke_patch.builder import GenericBuilder
from smoke_patch.errors import (
    ConfigurationError, ProvisioningError, SmokeError, StageFailure, PhaseFailure)
from smoke_patch.executor import CommandExecutor
from smoke_patch.job import JOB_STATES, INVERSE_JOB_STATES
from smoke_patch.logger import RunLogs
from smoke_patch.phases import PHASES, make_phase_jobs
from smoke_patch.scm import Provisioner
from smoke_patch.stage import ParallelStage, PhaseSequence
from smoke_patch.variants import resolve_variant
from smoke_patch.workspace import Workspace

log = logging.getLogger(__name__)


class RunResult(object):
    """ Final outcome of a smoke run. """

    def __init__(self, state, failed_unit=None, error=None, message=None,
                 logfile=None, logs=None):
        self.state = state
        self.failed_unit = failed_unit
        self.error = error
        self.message = message
        self.logfile = logfile
        self.logs = logs or OrderedDict()

    @property
    def succeeded(self):
        return self.state == JOB_STATES["succeeded"]

    @property
    def state_name(self):
        return INVERSE_JOB_STATES[self.state]

    def __repr__(self):
        return "<RunResult state: %s, failed_unit: %r, error: %r>" % (
            self.state_name, self.failed_unit, self.error)


class Orchestrator(object):
    """ Drives a single smoke run of a patch. """

    def __init__(self, conf, executor=None, provisioner=None, phases=PHASES):
        self.conf = conf
        self.executor = executor or CommandExecutor()
        self.workspace = Workspace(conf.run_dir, conf.checkout_name)
        self.provisioner = provisioner or Provisioner(conf, self.workspace, self.executor)
        self.phases = phases
        self.logs = OrderedDict()
        self.run_logs = RunLogs(conf.log_level)
        self._active = []
        self._lock = threading.Lock()

    def _track(self, unit):
        with self._lock:
            self._active.append(unit)
        return unit

    def cancel(self):
        """ Cancel every job, stage and sequence of the run still active. """
        with self._lock:
            active = list(self._active)
        for unit in reversed(active):
            unit.cancel()

    def check_patch(self, patch_file):
        if not patch_file:
            raise ConfigurationError("No patch file given")
        if not os.path.isfile(patch_file):
            raise ConfigurationError("File %s not found" % patch_file)
        if not os.access(patch_file, os.R_OK):
            raise ConfigurationError("File %s is not readable" % patch_file)
        log.info("Using patch file %s" % patch_file)

    def reset_workspace(self):
        try:
            self.workspace.reset()
            self.run_logs.start(self.workspace.root)
        except (OSError, ValueError) as e:
            raise ProvisioningError("Cannot prepare test run directory %s: %s" % (
                self.workspace.root, e), unit="workspace")

    def provision(self, patch_file):
        self.logs["provision"] = self.provisioner.logfile
        self.provisioner.provision(patch_file)

    def copy_aux_executables(self):
        """
        Copy the binaries the tests need but the build does not produce.
        Failures are only reported, they say nothing about the patch.
        """
        if not self.conf.tools_dir:
            log.info("No tools directory configured, not copying executables")
            return

        log.info("Copying executables to support tests ...")
        for name in self.conf.aux_executables:
            src = os.path.join(self.conf.tools_dir, name)
            try:
                shutil.copy2(src, self.workspace.src_path)
            except (IOError, OSError) as e:
                log.warning("Cannot copy %s: %s" % (src, e))

    def make_builder(self, build_config):
        """ :raises: StageFailure """
        try:
            return GenericBuilder.create(
                self.conf, self.workspace, build_config, self.executor)
        except ValueError as e:
            raise StageFailure(str(e), unit="build")

    def prepare(self, builder):
        """ Generate build files when needed, then build and lint.

        :raises: StageFailure
        """
        configure = builder.configure_job()
        if configure is not None:
            self._track(configure)
            self.logs.update(configure.logs)
            configure.run()
            if not configure.succeeded:
                raise StageFailure("configure failed with error %s" % configure.result.exit_code,
                                   unit=configure.name, logfile=configure.logfile)

        stage = self._track(ParallelStage("prepare", [builder.build_job(), builder.lint_job()]))
        self.logs.update(stage.logs)

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="prepare") as pool:
            future = pool.submit(stage.run)
            try:
                self.copy_aux_executables()
                log.info("Waiting for build and lint ...")
                result = future.result()
            except BaseException:
                stage.cancel()
                raise

        if not result.succeeded:
            raise StageFailure("%s failed" % result.failed_unit,
                               unit=result.failed_unit, logfile=result.logfile)

    def run_tests(self):
        """ Run the test phases in order.

        :raises: PhaseFailure
        """
        jobs = make_phase_jobs(self.conf, self.workspace, self.executor, self.phases)
        sequence = self._track(PhaseSequence("tests", jobs))
        try:
            result = sequence.run()
        finally:
            self.logs.update(sequence.logs)
        if not result.succeeded:
            raise PhaseFailure("%s failed" % result.failed_unit,
                               unit=result.failed_unit, logfile=result.logfile)

    def _failed(self, e):
        log.error("%s: %s" % (e.__class__.__name__, e))
        if e.logfile:
            log.error("See %s" % e.logfile)
        return RunResult(JOB_STATES["failed"], failed_unit=e.unit,
                         error=e.__class__.__name__, message=str(e),
                         logfile=e.logfile, logs=self.logs)

    def run(self, patch_file, variant=None):
        """ Smoke the patch and return the RunResult. """
        try:
            self.check_patch(patch_file)
        except ConfigurationError as e:
            return self._failed(e)

        try:
            self.reset_workspace()
            self.provision(patch_file)
            build_config = resolve_variant(variant, self.conf.default_variant)
            builder = self.make_builder(build_config)
            self.prepare(builder)
            self.run_tests()
        except SmokeError as e:
            return self._failed(e)
        except KeyboardInterrupt:
            log.error("Interrupted, cancelling all jobs ...")
            return RunResult(JOB_STATES["cancelled"], error="KeyboardInterrupt",
                             message="Interrupted", logs=self.logs)
        finally:
            self.cancel()
            self.run_logs.stop()

        log.info("All tests passed")
        return RunResult(JOB_STATES["succeeded"], logs=self.logs)
