# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Build system specific job construction.

Example usage:

    build_config = smoke_patch.variants.resolve_variant("clang")
    builder = GenericBuilder.create(conf, workspace, build_config)
    configure = builder.configure_job()   # None when nothing to generate
    build, lint = builder.build_job(), builder.lint_job()
"""

from abc import ABCMeta, abstractmethod
import logging
import os

from smoke_patch.job import Job

log = logging.getLogger(__name__)


class GenericBuilder(metaclass=ABCMeta):
    """
    External Api for build systems. Builders only assemble jobs, running them
    is left to the caller.
    """

    backend = "generic"
    backends = {}

    def __init__(self, conf, workspace, build_config, executor=None):
        """
        :param conf: smoke_patch.config.Config instance
        :param workspace: smoke_patch.workspace.Workspace of the run
        :param build_config: resolved smoke_patch.variants.BuildConfiguration
        :param executor: CommandExecutor shared by the created jobs
        """
        self.conf = conf
        self.workspace = workspace
        self.build_config = build_config
        self.executor = executor

    def __repr__(self):
        return "<%s variant: %s>" % (self.__class__.__name__, self.build_config.variant)

    @classmethod
    def register_backend_class(cls, backend_class):
        cls.backends[backend_class.backend] = backend_class

    @classmethod
    def create(cls, conf, workspace, build_config, executor=None, backend=None):
        """
        :param backend: a string representing the build system e.g. 'ninja',
            conf.system when not given
        """
        backend = backend or conf.system
        if backend not in cls.backends:
            raise ValueError("Builder backend='%s' not recognized" % backend)
        return cls.backends[backend](conf, workspace, build_config, executor)

    @property
    def scons_cmd(self):
        return self._in_checkout(self.conf.scons_cmd)

    def _in_checkout(self, cmd):
        # Scripts shipped with the tree are given relative to the checkout
        if not os.path.isabs(cmd) and os.sep in cmd:
            return os.path.join(self.workspace.src_path, cmd)
        return cmd

    def version_flags(self):
        return ["MONGO_VERSION=%s" % self.conf.mongo_version,
                "MONGO_GIT_HASH=%s" % self.conf.mongo_git_hash]

    def _job(self, name, cmd, parallelism=None):
        return Job(name, cmd, self.workspace.logfile(name), cwd=self.workspace.src_path,
                   parallelism=parallelism, executor=self.executor)

    def configure_job(self):
        """
        Returns the job generating build files which has to succeed before
        the build starts, or None when the build system needs none.
        """
        return None

    @abstractmethod
    def build_job(self):
        """ Returns the job compiling the tree. """
        raise NotImplementedError()

    def lint_job(self):
        """ Returns the job running the static checks. """
        jobs = self.conf.cpus_for_lint
        cmd = [self.scons_cmd, "-j", str(jobs)]
        cmd.extend(self.build_config.scons_flags)
        cmd.extend(self.version_flags())
        cmd.extend(["--no-cache", "--build-dir=%s" % self.workspace.lint_path, "lint"])
        return self._job("lint", cmd, jobs)


class NinjaBuilder(GenericBuilder):
    """ SCons generates build.ninja, ninja does the building. """

    backend = "ninja"

    def configure_job(self):
        cmd = [self.scons_cmd]
        cmd.extend(self.build_config.scons_flags)
        cmd.extend(self.version_flags())
        if self.conf.use_icecream:
            cmd.append("--icecream")
        cmd.extend(["VARIANT_DIR=ninja", "build.ninja"])
        return self._job("configure", cmd)

    def build_job(self):
        jobs = self.conf.cpus_for_build
        cmd = [self.conf.ninja_cmd, "-j", str(jobs), "all"]
        return self._job("build", cmd, jobs)


class SconsBuilder(GenericBuilder):
    """ SCons builds the tree by itself. """

    backend = "scons"

    def build_job(self):
        jobs = self.conf.cpus_for_build
        cmd = [self.scons_cmd, "-j", str(jobs)]
        cmd.extend(self.build_config.scons_flags)
        cmd.extend(self.version_flags())
        cmd.append("all")
        return self._job("build", cmd, jobs)


GenericBuilder.register_backend_class(NinjaBuilder)
GenericBuilder.register_backend_class(SconsBuilder)
