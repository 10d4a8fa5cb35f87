# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from os import environ, path
import tempfile


class BaseConfiguration(object):
    DEBUG = False
    SYSTEM = environ.get("SMOKE_BUILD_SYSTEM", "ninja")
    RUN_DIR = environ.get("SMOKE_RUN_DIR", "/tmp/TestRunDirectory")
    TOOLS_DIR = environ.get("SMOKE_TOOLS_DIR", path.expanduser("~/mongodb/3.6.0"))

    CPUS_FOR_BUILD = environ.get("SMOKE_CPUS_FOR_BUILD", 300)
    CPUS_FOR_LINT = environ.get("SMOKE_CPUS_FOR_LINT", 3)
    CPUS_FOR_TESTS = environ.get("SMOKE_CPUS_FOR_TESTS", 12)

    MONGO_VERSION = "0.0.0"
    MONGO_GIT_HASH = "unknown"
    USE_ICECREAM = environ.get("SMOKE_USE_ICECREAM", "true")

    LOG_BACKEND = "console"
    LOG_LEVEL = "info"


class TestConfiguration(BaseConfiguration):
    LOG_LEVEL = "debug"
    DEBUG = True
    RUN_DIR = path.join(tempfile.gettempdir(), "smoke-patch-tests")
    TOOLS_DIR = ""
    REPOSITORY_URL = "file:///nonexistent/mongo.git"
    CPUS_FOR_BUILD = 2
    CPUS_FOR_LINT = 1
    CPUS_FOR_TESTS = 2
    USE_ICECREAM = False


class ProdConfiguration(BaseConfiguration):
    pass


class DevConfiguration(BaseConfiguration):
    DEBUG = True
    LOG_LEVEL = "debug"
