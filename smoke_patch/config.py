# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Configuration handler functions."""

import importlib.util
import logging
import os
import sys

from smoke_patch import logger

log = logging.getLogger(__name__)

SYSTEM_CONFIG_FILE = "/etc/smoke-patch/config.py"
PREFIX_CONFIG_FILE = os.path.join(sys.prefix, "etc", "smoke-patch", "config.py")
SOURCE_CONFIG_FILE = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "conf", "config.py")


def asbool(value):
    """ Cast config values to boolean. """
    return str(value).lower() in [
        'y', 'yes', 't', 'true', '1', 'on'
    ]


def _load_config_module(config_file):
    spec = importlib.util.spec_from_file_location("smoke_patch_runtime_config", config_file)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def init_config():
    """ Configure smoke-patch and return the Config instance together with
    the name of the configuration section it was built from.
    """
    config_file = None
    config_section = "DevConfiguration"

    # automagically detect production environment:
    #   - existing and readable config_file presets ProdConfiguration
    for candidate in (SYSTEM_CONFIG_FILE, PREFIX_CONFIG_FILE):
        if os.access(candidate, os.R_OK):
            config_file = candidate
            config_section = "ProdConfiguration"
            break

    if "SMOKE_PATCH_CONFIG_FILE" in os.environ:
        config_file = os.environ["SMOKE_PATCH_CONFIG_FILE"]
    if "SMOKE_PATCH_CONFIG_SECTION" in os.environ:
        config_section = os.environ["SMOKE_PATCH_CONFIG_SECTION"]

    # TestConfiguration shall only be used for running tests, otherwise...
    if any("py.test" in arg or "pytest" in arg for arg in sys.argv):
        config_section = "TestConfiguration"
        if os.path.exists(SOURCE_CONFIG_FILE):
            config_file = SOURCE_CONFIG_FILE
    # ... otherwise don't allow for TestConfiguration
    elif config_section == "TestConfiguration":
        config_section = "ProdConfiguration"

    if config_file is None and os.path.exists(SOURCE_CONFIG_FILE):
        config_file = SOURCE_CONFIG_FILE

    config_section_obj = None
    if config_file is not None:
        config_module = _load_config_module(config_file)
        config_section_obj = getattr(config_module, config_section, None)
        if config_section_obj is None:
            raise ValueError("Configuration section %s not found in %s"
                             % (config_section, config_file))

    return Config(config_section_obj), config_section


class Config(object):
    """Class representing the smoke-patch configuration."""
    _defaults = {
        'system': {
            'type': str,
            'default': 'ninja',
            'desc': 'The build system used to compile the patched tree.'},
        'run_dir': {
            'type': str,
            'default': '/tmp/TestRunDirectory',
            'desc': 'Test run directory, deleted at the start of every run.'},
        'checkout_name': {
            'type': str,
            'default': 'mongo',
            'desc': 'Name of the source checkout directory inside run_dir.'},
        'repository_url': {
            'type': str,
            'default': 'git@github.com:mongodb/mongo.git',
            'desc': 'Repository the patch applies to.'},
        'modules': {
            'type': dict,
            'default': {
                'ninja': {
                    'url': 'git@github.com:RedBeard0531/mongo_module_ninja.git',
                    'path': 'src/mongo/db/modules/ninja'},
                'enterprise': {
                    'url': 'git@github.com:10gen/mongo-enterprise-modules.git',
                    'path': 'src/mongo/db/modules/subscription'},
                'rocksdb': {
                    'url': 'git@github.com:mongodb-partners/mongo-rocks.git',
                    'path': 'src/mongo/db/modules/rocksdb'},
            },
            'desc': 'Known sub-module repositories and their checkout paths.'},
        'enabled_modules': {
            'type': list,
            'default': ['ninja'],
            'desc': 'Sub-modules cloned into the checkout.'},
        'tools_dir': {
            'type': str,
            'default': '',
            'desc': 'Directory holding auxiliary executables needed by the tests.'},
        'aux_executables': {
            'type': list,
            'default': ['mongodump'],
            'desc': 'Executables copied from tools_dir into the checkout.'},
        'scons_cmd': {
            'type': str,
            'default': 'buildscripts/scons.py',
            'desc': 'SCons entry point, relative to the checkout.'},
        'ninja_cmd': {
            'type': str,
            'default': 'ninja',
            'desc': 'Ninja executable.'},
        'resmoke_cmd': {
            'type': str,
            'default': 'buildscripts/resmoke.py',
            'desc': 'Test runner entry point, relative to the checkout.'},
        'cpus_for_build': {
            'type': int,
            'default': 300,
            'desc': 'Parallelism of the build.'},
        'cpus_for_lint': {
            'type': int,
            'default': 3,
            'desc': 'Parallelism of the lint pass.'},
        'cpus_for_tests': {
            'type': int,
            'default': 12,
            'desc': 'Parallelism of each test phase.'},
        'mongo_version': {
            'type': str,
            'default': '0.0.0',
            'desc': 'MONGO_VERSION passed to the build.'},
        'mongo_git_hash': {
            'type': str,
            'default': 'unknown',
            'desc': 'MONGO_GIT_HASH passed to the build.'},
        'use_icecream': {
            'type': bool,
            'default': True,
            'desc': 'Distribute the ninja build with icecream.'},
        'test_flags': {
            'type': list,
            'default': ['--nopreallocj', '--log=file'],
            'desc': 'Flags passed to every test phase.'},
        'default_variant': {
            'type': str,
            'default': 'default',
            'desc': 'Build variant used when none is requested.'},
        'log_backend': {
            'type': str,
            'default': 'console',
            'desc': 'Log backend'},
        'log_file': {
            'type': str,
            'default': '',
            'desc': 'Path to log file'},
        'log_level': {
            'type': str,
            'default': 'info',
            'desc': 'Log level'},
    }

    def __init__(self, conf_section_obj=None):
        """
        Initialize the Config object with defaults and then override them
        with runtime values.
        """

        # set defaults
        for name, values in self._defaults.items():
            self.set_item(name, values['default'])

        if conf_section_obj is None:
            return

        # override defaults
        for key in dir(conf_section_obj):
            # skip keys starting with underscore
            if key.startswith('_'):
                continue
            # set item (lower key)
            self.set_item(key.lower(), getattr(conf_section_obj, key))

    def set_item(self, key, value):
        if key == 'set_item' or key.startswith('_'):
            raise Exception("Configuration item's name is not allowed: %s" % key)

        # customized check & set if there's a corresponding handler
        setifok_func = '_setifok_{}'.format(key)
        if hasattr(self, setifok_func):
            getattr(self, setifok_func)(value)
            return

        # managed/registered configuration items
        if key in self._defaults:
            # type conversion for configuration item
            convert = self._defaults[key]['type']
            if convert in [bool, int, list, str, dict]:
                try:
                    setattr(self, key, convert(value))
                except (TypeError, ValueError):
                    raise TypeError("Configuration value conversion failed for name: %s" % key)
            # if type is None, do not perform any conversion
            elif convert is None:
                setattr(self, key, value)
            # unknown type/unsupported conversion
            else:
                raise TypeError("Unsupported type %s for configuration item name: %s" % (convert, key))
        # passthrough for unmanaged configuration items
        else:
            setattr(self, key, value)

    def _setifok_system(self, s):
        s = str(s)
        if s not in ("ninja", "scons"):
            raise ValueError("Unsupported build system: %s." % s)
        self.system = s

    def _setifok_run_dir(self, s):
        s = str(s)
        if not s:
            raise ValueError("run_dir must not be empty")
        self.run_dir = os.path.abspath(os.path.expanduser(s))

    def _setifok_modules(self, d):
        if not isinstance(d, dict):
            raise TypeError("modules needs to be a dict.")
        for name, module in d.items():
            if 'url' not in module or 'path' not in module:
                raise ValueError("Module %s needs both url and path" % name)
        self.modules = dict(d)

    def _setifok_enabled_modules(self, l):
        if not isinstance(l, (list, tuple)):
            raise TypeError("enabled_modules needs to be a list.")
        self.enabled_modules = [str(x) for x in l]

    def _setifok_aux_executables(self, l):
        if not isinstance(l, (list, tuple)):
            raise TypeError("aux_executables needs to be a list.")
        self.aux_executables = [str(x) for x in l]

    def _setifok_test_flags(self, l):
        if isinstance(l, str):
            l = l.split()
        self.test_flags = [str(x) for x in l]

    def _check_cpus(self, name, i):
        try:
            i = int(i)
        except (TypeError, ValueError):
            raise TypeError("%s needs to be an int" % name.upper())
        if i < 1:
            raise ValueError("%s must be >= 1" % name.upper())
        setattr(self, name, i)

    def _setifok_cpus_for_build(self, i):
        self._check_cpus('cpus_for_build', i)

    def _setifok_cpus_for_lint(self, i):
        self._check_cpus('cpus_for_lint', i)

    def _setifok_cpus_for_tests(self, i):
        self._check_cpus('cpus_for_tests', i)

    def _setifok_use_icecream(self, b):
        self.use_icecream = asbool(b)

    def _setifok_log_backend(self, s):
        if s is None:
            s = "console"
        elif s not in logger.supported_log_backends():
            raise ValueError("Unsupported log backend")
        self.log_backend = str(s)

    def _setifok_log_file(self, s):
        if s is None:
            self.log_file = ""
        else:
            self.log_file = str(s)

    def _setifok_log_level(self, s):
        if isinstance(s, int):
            self.log_level = s
            return
        level = str(s).lower()
        self.log_level = logger.str_to_log_level(level)
