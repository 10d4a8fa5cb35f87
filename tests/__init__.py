# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os
import stat
import sys
import time

from smoke_patch.config import Config
from smoke_patch.job import Job

PYTHON = sys.executable

SUCCEED = "import sys; sys.exit(0)"
FAIL = "import sys; sys.exit(3)"
SLEEP = "import time; time.sleep(60)"

# Stands in for scons, ninja and resmoke.py: records its arguments and fails
# when one of them is listed in SMOKE_TEST_FAIL.
FAKE_TOOL = """#!{python}
import os
import sys

with open(os.environ["SMOKE_TEST_CALLS"], "a") as f:
    f.write(" ".join(sys.argv[1:]) + "\\n")

for token in os.environ.get("SMOKE_TEST_FAIL", "").split(","):
    if token and token in sys.argv[1:]:
        print("failing on %s" % token)
        sys.exit(1)
print("ok")
"""


def script_cmd(code):
    return [PYTHON, "-c", code]


def make_job(name, code, logdir, executor=None):
    return Job(name, script_cmd(code), os.path.join(logdir, "%s.log" % name),
               executor=executor)


def make_conf(run_dir, **overrides):
    conf = Config()
    conf.set_item("run_dir", run_dir)
    conf.set_item("tools_dir", "")
    conf.set_item("cpus_for_build", 2)
    conf.set_item("cpus_for_lint", 1)
    conf.set_item("cpus_for_tests", 2)
    for key, value in overrides.items():
        conf.set_item(key, value)
    return conf


def write_fake_tool(path):
    with open(path, "w") as f:
        f.write(FAKE_TOOL.format(python=PYTHON))
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_calls(path):
    if not os.path.exists(path):
        return []
    with open(path) as f:
        return [line.split() for line in f.read().splitlines()]


def read_log(path):
    with open(path) as f:
        return f.read()


def pid_alive(pid):
    """ Zombies count as dead, nobody might be reaping them. """
    try:
        with open("/proc/%d/stat" % pid) as f:
            return f.read().split(")")[-1].split()[0] != "Z"
    except (IOError, OSError):
        return False


def wait_until(predicate, timeout=10):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()
