# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Smoke a patch before submitting it for a CI run. Weeds out simple
programming errors without wasting CI time and money.

Export the changes through `git format-patch` into a file:

    git format-patch --stdout <Git hash> > Patch.patch

and smoke it:

    smoke_patch ~/Patch.patch [variant]
"""

import argparse
from contextlib import contextmanager
import logging
import signal
import sys

from smoke_patch import conf, version
from smoke_patch.logger import level_flags
from smoke_patch.orchestrator import Orchestrator
from smoke_patch.variants import VARIANTS

log = logging.getLogger(__name__)


def get_parser():
    parser = argparse.ArgumentParser(
        prog="smoke_patch", description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("patch_file", nargs="?",
                        help="patch produced by git format-patch")
    parser.add_argument("variant", nargs="?",
                        help="build variant, one of: %s (default: %s)" % (
                            ", ".join(sorted(VARIANTS)), conf.default_variant))
    parser.add_argument("-d", "--debug", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true")
    parser.add_argument("--list-variants", action="store_true",
                        help="print the known build variants and exit")
    parser.add_argument("--version", action="version", version="%(prog)s " + version)
    return parser


def set_log_level(debug=False, verbose=False, quiet=False):
    root = logging.getLogger()
    if debug:
        root.setLevel(level_flags["debug"])
    elif verbose:
        root.setLevel(level_flags["verbose"])
    elif quiet:
        root.setLevel(level_flags["quiet"])


def _interrupt(signum, frame):
    log.error("Received signal %d" % signum)
    raise KeyboardInterrupt()


@contextmanager
def interrupt_on_signals(signums=(signal.SIGTERM, signal.SIGHUP)):
    """
    Turn the termination signals into KeyboardInterrupt, so that the jobs
    running in their own sessions get cancelled instead of left behind.
    """
    previous = dict((signum, signal.signal(signum, _interrupt)) for signum in signums)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def main(argv=None):
    args = get_parser().parse_args(argv)
    set_log_level(args.debug, args.verbose, args.quiet)

    if args.list_variants:
        for name in sorted(VARIANTS):
            flags, compilers = VARIANTS[name]
            print("%-10s %s%s" % (name, " ".join(flags),
                                 " (%s)" % "/".join(compilers) if compilers else ""))
        return 0

    with interrupt_on_signals():
        result = Orchestrator(conf).run(args.patch_file, args.variant)
    if result.succeeded:
        print("Patch smoked successfully, logs in %s" % conf.run_dir)
        return 0

    print("Smoke failed: %s" % result.message, file=sys.stderr)
    if result.logfile:
        print("See %s" % result.logfile, file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
