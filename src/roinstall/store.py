# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Live Root Layout

Single responsibility: know where things live under an installation root.

    <root>/roimg/<pkg>.squashfs   committed image (proof of installation)
    <root>/roimg/<pkg>.meta       committed metadata
    <root>/roimg/tmp/.<pkg><pid>  staging directory of one transaction
    <root>/etc/                   configuration extracted on first install
    <root>/ro/ctl                 symlink to the daemon control socket
"""

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from .models import PackageMeta
from .naming import PackageRef

logger = logging.getLogger(__name__)

IMAGE_SUFFIX = ".squashfs"
META_SUFFIX = ".meta"


class RootLayout:
    """Paths and cheap filesystem checks for one target root"""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.store_dir = self.root / "roimg"
        self.tmp_dir = self.store_dir / "tmp"
        self.etc_dir = self.root / "etc"
        self.ctl_link = self.root / "ro" / "ctl"

    def image_path(self, pkg: str) -> Path:
        return self.store_dir / (pkg + IMAGE_SUFFIX)

    def meta_path(self, pkg: str) -> Path:
        return self.store_dir / (pkg + META_SUFFIX)

    def staging_dir(self, pkg: str, pid: Optional[int] = None) -> Path:
        """Per-process staging directory name for pkg"""
        return self.tmp_dir / f".{pkg}{os.getpid() if pid is None else pid}"

    async def is_installed(self, pkg: str) -> bool:
        """Only the image counts: metadata without an image is an interrupted commit."""
        return await aiofiles.os.path.exists(self.image_path(pkg))

    async def read_meta(self, pkg: str) -> Optional[PackageMeta]:
        """Committed metadata of pkg, or None if there is none."""
        path = self.meta_path(pkg)
        try:
            async with aiofiles.open(path) as f:
                text = await f.read()
        except FileNotFoundError:
            return None
        return PackageMeta.from_text(text, source=str(path))

    def is_first_install(self, pkg: str) -> bool:
        """
        True if no image of the same ``<name>-<arch>`` exists at any version.

        Names that are not fully qualified are always treated as first installs.
        """
        ref = PackageRef.parse(pkg)
        if not ref.version or not ref.arch:
            return True
        prefix = ref.base + "-"
        try:
            entries = os.listdir(self.store_dir)
        except FileNotFoundError:
            return True
        for entry in entries:
            if not entry.endswith(IMAGE_SUFFIX) or not entry.startswith(prefix):
                continue
            other = PackageRef.parse(entry[: -len(IMAGE_SUFFIX)])
            if other.base == ref.base:
                return False
        return True

    async def reset_staging_area(self):
        """
        Remove stale staging directories of interrupted runs and recreate
        the (empty) temp area.
        """
        if await aiofiles.os.path.exists(self.tmp_dir):
            logger.info(f"Removing stale staging area {self.tmp_dir}")
            await asyncio.to_thread(shutil.rmtree, self.tmp_dir)
        await aiofiles.os.makedirs(self.tmp_dir, exist_ok=True)
