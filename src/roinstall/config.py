# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
roinstall configuration - single source of truth.
YAML is king. Env vars only for the config location and log level.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError
from .naming import DEFAULT_ARCH, KNOWN_ARCHES

DEFAULT_CONFIG_PATH = "/etc/roinstall/config.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable installer configuration.
    All values from YAML. No hidden state.
    """

    # -- Install --
    arch: str = DEFAULT_ARCH
    concurrent_install_wait: float = 0.0  # 0 = trust a concurrent installer, don't poll

    # -- HTTP --
    http_timeout: float = 60.0

    # -- Paths --
    repos_conf_path: str = "/etc/roinstall/repos.conf"

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.

    Raises:
        ConfigurationError: If the file is not valid YAML or has bad values
    """
    if not Path(path).exists():
        return Config(log_level=os.getenv("LOG_LEVEL", "INFO"))

    try:
        with open(path) as f:
            y = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML: {e}", config_file=path) from e

    if not isinstance(y, dict):
        raise ConfigurationError("top level must be a mapping", config_file=path)

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    config = Config(
        # Install
        arch=get(y, "install", "arch") or DEFAULT_ARCH,
        concurrent_install_wait=float(get(y, "install", "concurrent_install_wait") or 0.0),

        # HTTP
        http_timeout=float(get(y, "http", "timeout") or 60.0),

        # Paths
        repos_conf_path=get(y, "paths", "repos_conf") or "/etc/roinstall/repos.conf",

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or "INFO",
        log_format=get(y, "logging", "format") or "json",
        log_file=get(y, "logging", "file"),
    )

    if config.arch not in KNOWN_ARCHES:
        raise ConfigurationError(
            f"unsupported architecture {config.arch!r}, expected one of {KNOWN_ARCHES}",
            config_file=path
        )
    if config.log_format not in ("json", "text"):
        raise ConfigurationError(f"unknown log format {config.log_format!r}", config_file=path)

    return config


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("ROINSTALL_CONFIG", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config
