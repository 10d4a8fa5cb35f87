# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Logging functions.

At the beginning of the smoke run, call the init_logging(conf) function.
Afterwards, create a logger in each module the usual way:

    log = logging.getLogger(__name__)

The orchestrator's own log can additionally be kept next to the run:

    run_logs = RunLogs(level)
    run_logs.start(workspace.root)
    ...
    run_logs.stop()
"""

import logging
import os

levels = {}
levels["debug"] = logging.DEBUG
levels["error"] = logging.ERROR
levels["warning"] = logging.WARNING
levels["info"] = logging.INFO

level_flags = {}
level_flags["debug"] = levels["debug"]
level_flags["verbose"] = levels["info"]
level_flags["quiet"] = levels["error"]

log_format = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

RUN_LOG_NAME = "smoke_patch.log"


def str_to_log_level(level):
    """
    Returns internal representation of logging level defined
    by the string `level`.

    Available levels are: debug, info, warning, error
    """
    if level not in levels:
        return logging.NOTSET

    return levels[level]


def supported_log_backends():
    return ("console", "file")


def init_logging(conf):
    """
    Initializes logging according to configuration file.
    """
    if conf.log_backend == "file" and conf.log_file:
        logging.basicConfig(filename=conf.log_file, level=conf.log_level, format=log_format)
    else:
        logging.basicConfig(level=conf.log_level, format=log_format)
    logging.getLogger("sh").setLevel(logging.WARNING)


class RunLogs(object):
    """
    Manages the file handler writing the orchestrator's own log into the
    workspace of a single run.
    """

    def __init__(self, level=logging.INFO):
        self.level = level
        self.handler = None

    def path(self, root):
        return os.path.join(root, RUN_LOG_NAME)

    def start(self, root):
        if self.handler is not None:
            return

        self.handler = logging.FileHandler(self.path(root), "a")
        self.handler.setLevel(self.level)
        self.handler.setFormatter(logging.Formatter(log_format, None))
        logging.getLogger().addHandler(self.handler)

    def stop(self):
        if self.handler is None:
            return

        logging.getLogger().removeHandler(self.handler)
        self.handler.flush()
        self.handler.close()
        self.handler = None
