# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from mock import patch

from smoke_patch.variants import VARIANTS, BuildConfiguration, resolve_variant


def fake_which(name):
    return "/usr/bin/%s" % name


class TestVariants:
    def test_default(self):
        build_config = resolve_variant()
        assert build_config.variant == "default"
        assert build_config.flags == ("--dbg=on", "--opt=off", "--ssl")
        assert build_config.cc is None
        assert build_config.scons_flags == ["--dbg=on", "--opt=off", "--ssl"]

    @patch("smoke_patch.variants.shutil.which", side_effect=fake_which)
    def test_compilers_resolved_from_path(self, which):
        build_config = resolve_variant("clang-3.8")
        assert build_config.cc == "/usr/bin/clang-3.8"
        assert build_config.cxx == "/usr/bin/clang++-3.8"
        assert build_config.scons_flags[-2:] == [
            "CC=/usr/bin/clang-3.8", "CXX=/usr/bin/clang++-3.8"]

    @patch("smoke_patch.variants.shutil.which", return_value=None)
    def test_missing_compiler_kept_by_name(self, which):
        build_config = resolve_variant("ubsan")
        assert build_config.cc == "clang"
        assert "--sanitize=undefined,address" in build_config.flags

    def test_unknown_variant_falls_back_to_default(self):
        assert resolve_variant("gcc-2.95").variant == "default"

    @patch("smoke_patch.variants.shutil.which", side_effect=fake_which)
    def test_configured_default(self, which):
        assert resolve_variant(None, default="dynamic").variant == "dynamic"
        assert resolve_variant("bogus", default="opt").variant == "opt"
        assert resolve_variant("bogus", default="bogus").variant == "default"

    @patch("smoke_patch.variants.shutil.which", side_effect=fake_which)
    def test_every_variant_resolves(self, which):
        for name in VARIANTS:
            build_config = resolve_variant(name)
            assert isinstance(build_config, BuildConfiguration)
            assert build_config.variant == name
