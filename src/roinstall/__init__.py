# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
roinstall - Read-Only Image Package Installer

Installs SquashFS image packages into a root:
- Resolve metadata across repositories, highest version wins
- Fetch images concurrently into private staging directories
- Commit metadata first, image last
- Refresh the image-serving daemon when done
"""

__version__ = "1.0.0"

from .models import InstallReport, PackageMeta, RepoConfig
from .repo_config import RepoConfigLoader
from .resolver import DependencyResolver, MetadataResolver
from .transactions import InstallTransaction
from .daemon import DaemonNotifier
from .operations import InstallOperations

__all__ = [
    "__version__",
    "InstallReport",
    "PackageMeta",
    "RepoConfig",
    "RepoConfigLoader",
    "MetadataResolver",
    "DependencyResolver",
    "InstallTransaction",
    "DaemonNotifier",
    "InstallOperations",
]
