# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import logging
import os
import shutil
import tempfile

from mock import patch
import pytest

import smoke_patch
from smoke_patch.config import Config, asbool, init_config


class TestConfig:
    def test_defaults(self):
        conf = Config()
        assert conf.system == "ninja"
        assert conf.run_dir == "/tmp/TestRunDirectory"
        assert conf.enabled_modules == ["ninja"]
        assert conf.cpus_for_build == 300
        assert conf.cpus_for_lint == 3
        assert conf.cpus_for_tests == 12
        assert conf.use_icecream is True
        assert conf.test_flags == ["--nopreallocj", "--log=file"]
        assert conf.log_level == logging.INFO
        assert set(conf.modules) == set(["ninja", "enterprise", "rocksdb"])

    def test_section_overrides_defaults(self):
        class Section(object):
            SYSTEM = "scons"
            CPUS_FOR_BUILD = "16"
            USE_ICECREAM = "false"
            TEST_FLAGS = "--nopreallocj --log=buildlogger"
            CUSTOM_ITEM = 42
            _PRIVATE = "ignored"

        conf = Config(Section)
        assert conf.system == "scons"
        assert conf.cpus_for_build == 16
        assert conf.use_icecream is False
        assert conf.test_flags == ["--nopreallocj", "--log=buildlogger"]
        assert conf.custom_item == 42
        assert not hasattr(conf, "_private")

    def test_run_dir_is_absolute(self):
        conf = Config()
        conf.set_item("run_dir", "~/smoke")
        assert conf.run_dir == os.path.join(os.path.expanduser("~"), "smoke")

    @pytest.mark.parametrize("key,value,exc", [
        ("system", "make", ValueError),
        ("run_dir", "", ValueError),
        ("cpus_for_build", 0, ValueError),
        ("cpus_for_tests", "many", TypeError),
        ("modules", ["ninja"], TypeError),
        ("modules", {"ninja": {"url": "git@host:ninja.git"}}, ValueError),
        ("enabled_modules", "ninja", TypeError),
        ("log_backend", "syslog", ValueError),
    ])
    def test_invalid_values(self, key, value, exc):
        with pytest.raises(exc):
            Config().set_item(key, value)

    def test_reserved_names(self):
        with pytest.raises(Exception):
            Config().set_item("_defaults", {})

    def test_log_level(self):
        conf = Config()
        conf.set_item("log_level", "DEBUG")
        assert conf.log_level == logging.DEBUG
        conf.set_item("log_level", logging.ERROR)
        assert conf.log_level == logging.ERROR

    def test_asbool(self):
        assert asbool("Yes")
        assert asbool(1)
        assert not asbool("off")
        assert not asbool(None)


class TestInitConfig:
    def setup_method(self, test_method):
        self.tempdir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.tempdir, "config.py")
        with open(self.config_file, "w") as f:
            f.write("class Custom(object):\n"
                    "    SYSTEM = 'scons'\n"
                    "    RUN_DIR = '/srv/smoke'\n"
                    "class TestConfiguration(object):\n"
                    "    RUN_DIR = '/srv/test'\n")

    def teardown_method(self, test_method):
        shutil.rmtree(self.tempdir)

    def test_package_uses_test_configuration(self):
        assert smoke_patch.config_section == "TestConfiguration"
        assert smoke_patch.conf.run_dir.endswith("smoke-patch-tests")
        assert smoke_patch.conf.use_icecream is False

    def test_environment_selects_file_and_section(self):
        env = {"SMOKE_PATCH_CONFIG_FILE": self.config_file,
               "SMOKE_PATCH_CONFIG_SECTION": "Custom"}
        with patch.dict(os.environ, env), patch("sys.argv", ["smoke_patch"]):
            conf, section = init_config()
        assert section == "Custom"
        assert conf.system == "scons"
        assert conf.run_dir == "/srv/smoke"

    def test_test_configuration_refused_outside_tests(self):
        env = {"SMOKE_PATCH_CONFIG_FILE": self.config_file,
               "SMOKE_PATCH_CONFIG_SECTION": "TestConfiguration"}
        with patch.dict(os.environ, env), patch("sys.argv", ["smoke_patch"]):
            with pytest.raises(ValueError) as exc:
                init_config()
        assert "ProdConfiguration" in str(exc.value)

    def test_missing_section(self):
        env = {"SMOKE_PATCH_CONFIG_FILE": self.config_file,
               "SMOKE_PATCH_CONFIG_SECTION": "Nope"}
        with patch.dict(os.environ, env), patch("sys.argv", ["smoke_patch"]):
            with pytest.raises(ValueError):
                init_config()
