# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Tests for the roinstall command line"""

from unittest.mock import patch

import pytest

from roinstall.cli import build_parser, main


@pytest.fixture
def cli_env(tmp_path, image_opener):
    """Empty config file and a fake image decoder"""
    config = tmp_path / "config.yaml"
    config.write_text("logging:\n  format: text\n")
    with patch("roinstall.operations.open_image", image_opener):
        yield config


class TestParser:
    """Test argument parsing"""

    def test_defaults(self):
        args = build_parser().parse_args(["install", "bash"])

        assert args.command == "install"
        assert args.packages == ["bash"]
        assert args.root == "/"
        assert args.repo is None

    def test_requires_packages(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["install"])

        assert exc_info.value.code == 2


class TestMain:
    """Test the install command end to end"""

    def test_install_from_repo_flag(self, cli_env, root, repo):
        repo.publish("bash-amd64", "5.0-4", deps=["glibc-amd64-2.31-4"])
        repo.add("glibc-amd64-2.31-4", "2.31-4")

        code = main([
            "install", "--config", str(cli_env), "--root", str(root),
            "--repo", str(repo.path), "bash",
        ])

        assert code == 0
        assert (root / "roimg" / "bash-amd64-5.0-4.squashfs").exists()
        assert (root / "roimg" / "glibc-amd64-2.31-4.squashfs").exists()

    def test_install_from_repos_conf(self, cli_env, tmp_path, root, repo):
        """Test that repositories come from the configured repos.conf"""
        repo.publish("bash-amd64", "5.0-4")
        repos_conf = tmp_path / "repos.conf"
        repos_conf.write_text(f"[main]\nurl = {repo.path}\n")
        cli_env.write_text(f"paths:\n  repos_conf: {repos_conf}\nlogging:\n  format: text\n")

        code = main(["install", "--config", str(cli_env), "--root", str(root), "bash"])

        assert code == 0
        assert (root / "roimg" / "bash-amd64-5.0-4.squashfs").exists()

    def test_package_not_found(self, cli_env, root, repo):
        code = main([
            "install", "--config", str(cli_env), "--root", str(root),
            "--repo", str(repo.path), "nope",
        ])

        assert code == 1

    def test_no_repositories(self, cli_env, tmp_path, root):
        cli_env.write_text(f"paths:\n  repos_conf: {tmp_path / 'missing.conf'}\n")

        assert main(["install", "--config", str(cli_env), "--root", str(root), "bash"]) == 1

    def test_invalid_config(self, cli_env, root, repo):
        cli_env.write_text("install:\n  arch: sparc\n")

        code = main([
            "install", "--config", str(cli_env), "--root", str(root),
            "--repo", str(repo.path), "bash",
        ])

        assert code == 1
