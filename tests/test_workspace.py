# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os
import shutil
import tempfile

import pytest

from smoke_patch.workspace import Workspace


class TestWorkspace:
    def setup_method(self, test_method):
        self.tempdir = tempfile.mkdtemp()
        self.root = os.path.join(self.tempdir, "TestRunDirectory")

    def teardown_method(self, test_method):
        shutil.rmtree(self.tempdir)

    def test_layout(self):
        workspace = Workspace(self.root, "mongo")
        assert workspace.db_path == os.path.join(self.root, "db")
        assert workspace.lint_path == os.path.join(self.root, "lint")
        assert workspace.src_path == os.path.join(self.root, "mongo")
        assert workspace.logfile("build") == os.path.join(self.root, "logs", "build.log")

    def test_reset_creates_tree(self):
        workspace = Workspace(self.root)
        workspace.reset()
        for path in (workspace.root, workspace.db_path, workspace.lint_path,
                     workspace.logs_path):
            assert os.path.isdir(path)
        assert not os.path.exists(workspace.src_path)

    def test_reset_deletes_previous_run(self):
        workspace = Workspace(self.root)
        workspace.reset()
        os.makedirs(workspace.src_path)
        leftover = os.path.join(workspace.logs_path, "build.log")
        with open(leftover, "w") as f:
            f.write("old")

        workspace.reset()
        assert not os.path.exists(leftover)
        assert not os.path.exists(workspace.src_path)
        assert os.path.isdir(workspace.logs_path)

    @pytest.mark.parametrize("root", ["/", "~"])
    def test_refuses_dangerous_roots(self, root):
        with pytest.raises(ValueError):
            Workspace(os.path.expanduser(root)).reset()
