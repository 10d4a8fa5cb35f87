# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""The ordered test phases.

Unit tests run first to uncover early problems before any of the longer
running JS suites gets scheduled.
"""

from collections import namedtuple
import os

from smoke_patch.job import Job

Phase = namedtuple("Phase", ["name", "description", "suites", "storage_engine",
                             "continue_on_failure"])

PHASES = (
    Phase("unittests", "unittests", ("unittests",), None, False),
    Phase("mmapv1_core", "MMAP V1 dbtest,core", ("dbtest", "core"), "mmapv1", False),
    Phase("wiredtiger_core", "WT dbtest,core", ("dbtest", "core"), "wiredTiger", False),
    Phase("aggregation", "WT aggregation", ("aggregation",), "wiredTiger", False),
    Phase("auth", "WT auth", ("auth",), "wiredTiger", False),
    Phase("sharding_jscore_passthrough", "WT sharding_jscore_passthrough",
          ("sharding_jscore_passthrough",), "wiredTiger", False),
    # Gathers every failing sub-test in one pass, the phase still fails.
    Phase("sharding", "WT sharding", ("sharding",), "wiredTiger", True),
)


def phase_cmd(phase, conf, workspace):
    """ Return the test runner command line of `phase`. """
    resmoke = conf.resmoke_cmd
    if not os.path.isabs(resmoke) and os.sep in resmoke:
        resmoke = os.path.join(workspace.src_path, resmoke)

    cmd = [resmoke, "-j", str(conf.cpus_for_tests),
           "--dbpathPrefix=%s" % workspace.db_path]
    cmd.extend(conf.test_flags)
    if phase.continue_on_failure:
        cmd.append("--continueOnFailure")
    if phase.storage_engine:
        cmd.append("--storageEngine=%s" % phase.storage_engine)
    cmd.append("--suites=%s" % ",".join(phase.suites))
    return cmd


def make_phase_jobs(conf, workspace, executor=None, phases=PHASES):
    """ Create one pending Job per phase, in order. """
    return [
        Job(phase.name, phase_cmd(phase, conf, workspace), workspace.logfile(phase.name),
            cwd=workspace.src_path, parallelism=conf.cpus_for_tests, executor=executor)
        for phase in phases
    ]
