# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Smoke-test a patch before submitting it to the CI fleet.

Running the full CI matrix on a patch that does not even compile wastes
machine time and money. smoke-patch is responsible for a number of tasks
executed on a single host:

- Preparing a clean workspace with a shallow checkout of the source tree,
  any optional sub-modules and the patch applied on top.
- Building and linting the patched tree side by side, aborting both as
  soon as either of them fails.
- Running an ordered battery of test suites, fastest and most telling
  first, stopping at the first failing one.
- Reporting a single verdict together with the log of the first failure.
"""

from importlib.metadata import PackageNotFoundError, version as _dist_version
import logging

from smoke_patch.config import init_config
from smoke_patch.logger import init_logging

try:
    version = _dist_version("smoke-patch")
except PackageNotFoundError:
    version = "unknown"

conf, config_section = init_config()
init_logging(conf)
log = logging.getLogger(__name__)
