# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Command line entry point: ``roinstall install [options] <package>...``
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from .config import Config, get_config, load_config
from .errors import InstallError
from .logging import configure_logging
from .operations import InstallOperations
from .repo_config import RepoConfigLoader, repo_from_location

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roinstall", description="Install image packages into a root")
    subparsers = parser.add_subparsers(dest="command", required=True)

    install = subparsers.add_parser("install", help="Install packages and their runtime dependencies")
    install.add_argument("packages", nargs="+", metavar="package", help="Package to install")
    install.add_argument("--root", default="/", help="Root directory for optionally installing into a chroot")
    install.add_argument(
        "--repo",
        default=None,
        help="Repository to install packages from: directory path or HTTP URL (overrides repos.conf)"
    )
    install.add_argument("--config", default=None, help="Path to config.yaml")
    install.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    install.add_argument("--log-format", choices=["json", "text"], default=None)
    return parser


def install(args: argparse.Namespace, config: Config) -> int:
    if args.repo:
        repos = [repo_from_location(args.repo)]
    else:
        repos = RepoConfigLoader(Path(config.repos_conf_path)).load()

    operations = InstallOperations(
        root=Path(args.root),
        repos=repos,
        arch=config.arch,
        http_timeout=config.http_timeout,
        concurrent_install_wait=config.concurrent_install_wait
    )
    report = asyncio.run(operations.install(args.packages))
    logger.info(
        f"installed {len(report.installed)} of {len(report.results)} artifacts",
        extra={"installed": report.installed, "daemon_notified": report.daemon_notified}
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_config()
    except InstallError as e:
        configure_logging()
        logger.error(f"configuration: {e}")
        return 1

    configure_logging(
        log_level=args.log_level or config.log_level,
        log_format=args.log_format or config.log_format,
        log_file=Path(config.log_file) if config.log_file else None
    )

    try:
        return install(args, config)
    except InstallError as e:
        error = e.to_dict()
        logger.error(e.message, extra={"error": error["error"], "details": error["details"]})
        return 1
    except OSError as e:
        logger.error(f"install failed: {e}")
        return 1
