# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Repository Configuration Loader

Single responsibility: Load the ordered repository list from repos.conf
"""

import configparser
import logging
from pathlib import Path
from typing import List

from .errors import ConfigurationError
from .models import RepoConfig

logger = logging.getLogger(__name__)


class RepoConfigLoader:
    """Loads repository configurations from INI-style repos.conf

    Example::

        [main]
        url = https://repo.example.org/2020-02-25

        [local]
        url = /srv/build/out
        enabled = false
    """

    def __init__(self, config_path: Path):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to repos.conf file
        """
        self.config_path = config_path

    def load(self) -> List[RepoConfig]:
        """
        Load repository configurations from repos.conf.

        Section order is the search order. Disabled repositories are dropped.

        Returns:
            Enabled repositories, in file order

        Raises:
            ConfigurationError: If the file cannot be parsed or a section has no url
        """
        repos: List[RepoConfig] = []

        if not self.config_path.exists():
            logger.warning(f"No repos.conf found at {self.config_path}")
            return repos

        config = configparser.ConfigParser()
        try:
            config.read(self.config_path)
        except configparser.Error as e:
            raise ConfigurationError(f"cannot parse repos.conf: {e}", config_file=str(self.config_path)) from e

        for section in config.sections():
            url = config.get(section, "url", fallback="").strip()
            if not url:
                raise ConfigurationError(
                    f"repository {section} has no url",
                    config_file=str(self.config_path)
                )
            try:
                enabled = config.getboolean(section, "enabled", fallback=True)
            except ValueError as e:
                raise ConfigurationError(
                    f"repository {section}: {e}",
                    config_file=str(self.config_path)
                ) from e

            if not enabled:
                logger.info(f"Skipping disabled repository: {section}")
                continue

            repos.append(RepoConfig(name=section, url=url.rstrip("/"), enabled=True))
            logger.info(f"Loaded repository: {section} ({url})")

        return repos


def repo_from_location(location: str) -> RepoConfig:
    """Build a RepoConfig for a --repo command line override"""
    return RepoConfig(name="cmdline", url=location.rstrip("/") or location)
