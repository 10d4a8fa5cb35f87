# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""SCM handler functions and workspace provisioning."""

import logging
import os
import re

from smoke_patch.errors import ProvisioningError
from smoke_patch.executor import CommandExecutor

log = logging.getLogger(__name__)


class SCM(object):
    "SCM abstraction class"

    # Assuming git for all of these
    types = {
        "git": ("git://", "git+http://", "git+https://", "git+ssh://",
                "ssh://", "http://", "https://", "file://", "git@")
    }

    def __init__(self, url):
        """Initialize the SCM object using the specified scmurl.

        NOTE: only git URLs in the following formats are supported atm:
            git://
            git+http://
            git+https://
            git+ssh://
            ssh://
            http://
            https://
            file://
            git@host:path

        A commit may be appended as ?#<commit>, the default branch HEAD is
        checked out otherwise.

        :param str url: The unmodified scmurl
        :raises: ValueError
        """
        self.url = url

        for scmtype, schemes in SCM.types.items():
            if self.url.startswith(schemes):
                self.scheme = scmtype
                break
        else:
            raise ValueError('Invalid SCM URL: %s' % url)

        match = re.search(r"^(?P<repository>.*[/:](?P<name>[^/:?]+))(\?#(?P<commit>.*))?$", url)
        if not match:
            raise ValueError('Invalid SCM URL: %s' % url)
        self.repository = match.group("repository")
        if self.repository.startswith("git+"):
            self.repository = self.repository[4:]
        self.name = match.group("name")
        if self.name.endswith(".git"):
            self.name = self.name[:-4]
        self.commit = match.group("commit") or None

    def __repr__(self):
        return "<SCM %s%s>" % (self.repository, "?#" + self.commit if self.commit else "")

    def clone_cmds(self, sourcedir):
        """ Return the commands checking the repository out into sourcedir,
        as a list of (cmd, cwd) pairs.
        """
        clone_cmd = ['git', 'clone', '-q']
        if not self.commit:
            clone_cmd.extend(['--depth', '1'])
        clone_cmd.extend([self.repository, sourcedir])

        cmds = [(clone_cmd, None)]
        if self.commit:
            cmds.append((['git', 'checkout', '-q', self.commit], sourcedir))
        return cmds


class Provisioner(object):
    """
    Fetches the source tree and the enabled sub-modules into the workspace
    and applies the patch. Every git invocation appends to the provision log.
    Nothing is retried: a failure here says something about the patch or the
    environment, never about luck.
    """

    def __init__(self, conf, workspace, executor=None):
        self.conf = conf
        self.workspace = workspace
        self.executor = executor or CommandExecutor()

    @property
    def logfile(self):
        return self.workspace.logfile("provision")

    def _run(self, cmd, cwd, what):
        result = self.executor.run(cmd, self.logfile, cwd=cwd)
        if not result.succeeded:
            raise ProvisioningError(
                "%s failed with error %s%s" % (
                    what, result.exit_code, ": %s" % result.error if result.error else ""),
                unit="provision", logfile=self.logfile)

    def checkout(self, url, sourcedir, what):
        try:
            scm = SCM(url)
        except ValueError as e:
            raise ProvisioningError(str(e), unit="provision", logfile=self.logfile)

        log.info("Cloning %s into %s ..." % (scm.repository, sourcedir))
        for cmd, cwd in scm.clone_cmds(sourcedir):
            self._run(cmd, cwd, what)
        return sourcedir

    def checkout_modules(self):
        for name in self.conf.enabled_modules:
            module = self.conf.modules.get(name)
            if module is None:
                raise ProvisioningError("Unknown module %s" % name,
                                        unit="provision", logfile=self.logfile)
            sourcedir = os.path.join(self.workspace.src_path, module["path"])
            self.checkout(module["url"], sourcedir, "Cloning module %s" % name)

    def apply_patch(self, patch_file):
        log.info("Applying patch file %s" % patch_file)
        self._run(['git', 'apply', os.path.abspath(patch_file)],
                  self.workspace.src_path, "git apply")

    def provision(self, patch_file):
        """ Prepare the patched source tree.

        :raises: ProvisioningError
        """
        self.checkout(self.conf.repository_url, self.workspace.src_path,
                      "Cloning %s" % self.conf.repository_url)
        self.checkout_modules()
        self.apply_patch(patch_file)
        return self.workspace.src_path
