# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for Installer Data Models

Tests metadata document parsing and the install report.
"""

import pytest

from roinstall.errors import MetadataError
from roinstall.models import (
    ArtifactResult,
    ArtifactStatus,
    InstallReport,
    PackageMeta,
    RepoConfig,
)


class TestPackageMeta:
    """Test suite for metadata documents"""

    def test_parse_document(self):
        """Test parsing version and ordered dependencies"""
        meta = PackageMeta.from_text(
            "version: 5.0-4\n"
            "runtime_dep:\n"
            "  - glibc-amd64-2.31-4\n"
            "  - ncurses-amd64-6.1-8\n"
        )

        assert meta.version == "5.0-4"
        assert meta.runtime_dep == ["glibc-amd64-2.31-4", "ncurses-amd64-6.1-8"]

    def test_versions_stay_strings(self):
        """Test that 1.10 is not read as the float 1.1"""
        meta = PackageMeta.from_text("version: 1.10\n")

        assert meta.version == "1.10"
        assert meta.runtime_dep == []

    def test_textproto_style_single_line(self):
        """Test that a one-line textproto document is accepted"""
        meta = PackageMeta.from_text('version: "2.3"')

        assert meta.version == "2.3"

    def test_scalar_dependency(self):
        """Test that a lone dependency may be a scalar"""
        meta = PackageMeta.from_text("version: '1'\nruntime_dep: zlib-amd64-1.2.11-3\n")

        assert meta.runtime_dep == ["zlib-amd64-1.2.11-3"]

    def test_repeated_dependency_lines(self):
        """Test that textproto-style repeated runtime_dep lines are all kept"""
        meta = PackageMeta.from_text(
            'version: "5.0-4"\n'
            'runtime_dep: "glibc-amd64-2.31-4"\n'
            'runtime_dep: "ncurses-amd64-6.1-8"\n'
            'runtime_dep: "readline-amd64-8.0-2"\n'
        )

        assert meta.runtime_dep == [
            "glibc-amd64-2.31-4",
            "ncurses-amd64-6.1-8",
            "readline-amd64-8.0-2",
        ]

    def test_repeated_dependency_mixed_forms(self):
        """Test that a list and later single lines are concatenated in order"""
        meta = PackageMeta.from_text(
            "version: '1'\n"
            "runtime_dep: [a-amd64-1-1, b-amd64-1-1]\n"
            "runtime_dep: c-amd64-1-1\n"
        )

        assert meta.runtime_dep == ["a-amd64-1-1", "b-amd64-1-1", "c-amd64-1-1"]

    def test_duplicate_version_rejected(self):
        """Test that repeating any other key is malformed"""
        with pytest.raises(MetadataError, match="duplicate key 'version'"):
            PackageMeta.from_text("version: '1.0'\nversion: '2.0'\n", source="repo/pkg/x.meta")

    def test_unknown_keys_ignored(self):
        """Test that extra keys do not break parsing"""
        meta = PackageMeta.from_text("version: '1'\nsource_pkg: bash\n")

        assert meta.version == "1"

    def test_round_trip(self):
        """Test to_text output parses back to the same metadata"""
        meta = PackageMeta(version="1.0", runtime_dep=["a-amd64-1-1"])

        assert PackageMeta.from_text(meta.to_text()) == meta

    @pytest.mark.parametrize("text", [
        "",
        "- just\n- a list\n",
        "runtime_dep: [a]\n",
        "version: ''\n",
        "version: [1, 2]\n",
        "version: '1\n",
    ])
    def test_malformed(self, text):
        """Test that malformed documents raise MetadataError"""
        with pytest.raises(MetadataError, match="malformed metadata"):
            PackageMeta.from_text(text, source="repo/pkg/x.meta")


class TestRepoConfig:
    """Test suite for repository configs"""

    def test_http_detection(self):
        assert RepoConfig(name="a", url="https://repo.example.org").is_http
        assert RepoConfig(name="a", url="http://repo.example.org").is_http
        assert not RepoConfig(name="a", url="/srv/repo").is_http
        assert not RepoConfig(name="a", url="file:///srv/repo").is_http


class TestInstallReport:
    """Test suite for the install report"""

    def test_installed(self):
        report = InstallReport(
            root="/",
            requested=["bash"],
            results=[
                ArtifactResult(name="bash-amd64-5.0-4", status=ArtifactStatus.INSTALLED),
                ArtifactResult(name="glibc-amd64-2.31-4", status=ArtifactStatus.ALREADY_INSTALLED),
                ArtifactResult(name="ncurses-amd64-6.1-8", status=ArtifactStatus.DEFERRED),
            ]
        )

        assert report.installed == ["bash-amd64-5.0-4"]
