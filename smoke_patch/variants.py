# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Build variants.

A variant is a named combination of build flags and compiler choice. The
table is closed: asking for a variant it does not know gives the default one.
"""

from collections import namedtuple
import logging
import shutil

log = logging.getLogger(__name__)

DEFAULT_VARIANT = "default"

_DEBUG_OPT = ["--dbg=on", "--opt=on", "--ssl"]

# variant name -> (flags, (CC, CXX) or None for the toolchain default)
VARIANTS = {
    "default": (["--dbg=on", "--opt=off", "--ssl"], None),
    "opt": (["--dbg=off", "--opt=on", "--ssl"], None),
    "clang": (_DEBUG_OPT, ("clang", "clang++")),
    "clang-3.8": (_DEBUG_OPT, ("clang-3.8", "clang++-3.8")),
    "dynamic": (_DEBUG_OPT + ["--link-model=dynamic"], ("clang-3.8", "clang++-3.8")),
    "ubsan": (_DEBUG_OPT + ["--allocator=system", "--sanitize=undefined,address"],
              ("clang", "clang++")),
}


class BuildConfiguration(namedtuple("BuildConfiguration", ["variant", "flags", "cc", "cxx"])):
    """ Concrete flags and compilers of a resolved variant. Immutable. """

    __slots__ = ()

    @property
    def scons_flags(self):
        flags = list(self.flags)
        if self.cc:
            flags.append("CC=%s" % self.cc)
        if self.cxx:
            flags.append("CXX=%s" % self.cxx)
        return flags


def _find_compiler(name):
    path = shutil.which(name)
    if path is None:
        log.warning("Compiler %s not found in PATH, passing it on as is" % name)
        return name
    return path


def resolve_variant(name=None, default=DEFAULT_VARIANT):
    """ Return the BuildConfiguration of variant `name`.

    Unknown or empty names select the `default` variant.
    """
    if not name:
        name = default
    if name not in VARIANTS:
        log.warning("Unknown build variant %r, using %r" % (name, default))
        name = default if default in VARIANTS else DEFAULT_VARIANT

    flags, compilers = VARIANTS[name]
    cc = cxx = None
    if compilers is not None:
        cc, cxx = [_find_compiler(c) for c in compilers]

    build_config = BuildConfiguration(name, tuple(flags), cc, cxx)
    log.info("Using build variant %s: %s" % (name, " ".join(build_config.scons_flags)))
    return build_config
