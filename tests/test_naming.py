# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Unit tests for package names and version ordering"""

import pytest

from roinstall.naming import (
    PackageRef,
    has_arch_suffix,
    likely_fully_specified,
    qualify_name,
    version_key,
)


class TestQualifyName:
    """Test architecture defaulting"""

    def test_appends_default_arch(self):
        assert qualify_name("bash") == "bash-amd64"

    def test_appends_configured_arch(self):
        assert qualify_name("bash", arch="i686") == "bash-i686"

    def test_keeps_arch_suffix(self):
        assert qualify_name("bash-i686") == "bash-i686"

    def test_keeps_fully_specified(self):
        assert qualify_name("bash-amd64-5.0-4") == "bash-amd64-5.0-4"

    def test_has_arch_suffix(self):
        assert has_arch_suffix("bash-amd64") == "amd64"
        assert has_arch_suffix("bash-amd64-5.0-4") is None
        assert has_arch_suffix("bash") is None

    def test_likely_fully_specified(self):
        assert likely_fully_specified("glibc-amd64-2.31-4")
        assert not likely_fully_specified("glibc-amd64")
        assert not likely_fully_specified("glibc")


class TestPackageRef:
    """Test PackageRef parsing"""

    def test_parse_fully_specified(self):
        ref = PackageRef.parse("xorg-server-amd64-1.20.7-11")

        assert ref.name == "xorg-server"
        assert ref.arch == "amd64"
        assert ref.version == "1.20.7-11"
        assert ref.base == "xorg-server-amd64"
        assert str(ref) == "xorg-server-amd64-1.20.7-11"

    def test_parse_arch_only(self):
        ref = PackageRef.parse("bash-i686")

        assert ref == PackageRef(name="bash", arch="i686")

    def test_parse_bare(self):
        assert PackageRef.parse("bash") == PackageRef(name="bash")

    def test_empty_name(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            PackageRef.parse("  ")


class TestVersionKey:
    """Test version ordering"""

    def test_selects_highest(self):
        assert max(["1.0", "2.3", "1.9"], key=version_key) == "2.3"

    def test_numeric_components(self):
        assert version_key("2.10") > version_key("2.9")

    def test_revision_breaks_ties(self):
        assert version_key("5.0-10") > version_key("5.0-4")

    def test_upstream_before_revision(self):
        assert version_key("5.1-1") > version_key("5.0-9")

    def test_numbers_sort_above_letters(self):
        assert version_key("1.0.1") > version_key("1.0.beta")

    def test_equal_versions(self):
        assert version_key("1.2.3-4") == version_key("1.2.3-4")
