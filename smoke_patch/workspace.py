# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" The run-scoped directory tree every job works in. """

import logging
import os
import shutil

log = logging.getLogger(__name__)


class Workspace(object):
    """ Test run directory layout.

    <root>/db       database path prefix of the test runner
    <root>/lint     build directory of the lint pass
    <root>/logs     one log per stage and per test phase
    <root>/<name>   the patched source checkout
    """

    def __init__(self, root, checkout_name="mongo"):
        self.root = os.path.abspath(root)
        self.checkout_name = checkout_name

    def __repr__(self):
        return "<Workspace %s>" % self.root

    @property
    def db_path(self):
        return os.path.join(self.root, "db")

    @property
    def lint_path(self):
        return os.path.join(self.root, "lint")

    @property
    def logs_path(self):
        return os.path.join(self.root, "logs")

    @property
    def src_path(self):
        return os.path.join(self.root, self.checkout_name)

    def logfile(self, name):
        return os.path.join(self.logs_path, "%s.log" % name)

    def reset(self):
        """ Delete whatever a previous run left behind and recreate the tree.

        The source checkout directory is left for the provisioner to create.
        """
        if self.root in ("/", os.path.expanduser("~")):
            raise ValueError("Refusing to use %s as test run directory" % self.root)

        log.info("Using test run directory %s" % self.root)
        if os.path.exists(self.root):
            log.info("Deleting previous test run directory %s ..." % self.root)
            shutil.rmtree(self.root)

        for path in (self.root, self.db_path, self.lint_path, self.logs_path):
            os.makedirs(path)
