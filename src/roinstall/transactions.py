# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Install Transaction

Single responsibility: stage one package's image and metadata in a private
directory, then commit them into the live store in an order that never
shows a half-installed package.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, Optional

import aiofiles.os

from .errors import InstallError
from .extract import extract_config
from .image import ImageReader, open_image
from .models import ArtifactResult, ArtifactStatus
from .progress import ByteCounter
from .source import ArtifactSource
from .store import IMAGE_SUFFIX, META_SUFFIX, RootLayout

logger = logging.getLogger(__name__)

ImageOpener = Callable[[Path], ImageReader]

POLL_INTERVAL = 0.5


class InstallTransaction:
    """One attempt at installing one fully qualified package"""

    def __init__(
        self,
        layout: RootLayout,
        source: ArtifactSource,
        pkg: str,
        counter: ByteCounter,
        first_install: bool = False,
        image_opener: ImageOpener = open_image,
        concurrent_install_wait: float = 0.0
    ):
        """
        Initialize install transaction.

        Args:
            layout: Live root layout
            source: Repository that won resolution for this package's request
            pkg: Fully qualified package name
            counter: Byte counter of the current run
            first_install: Extract the image's /etc before committing
            image_opener: Opens a staged image for config extraction
            concurrent_install_wait: Seconds to wait for a concurrent installer
                to commit the image; 0 trusts it without checking
        """
        self.layout = layout
        self.source = source
        self.pkg = pkg
        self.counter = counter
        self.first_install = first_install
        self.image_opener = image_opener
        self.concurrent_install_wait = concurrent_install_wait
        self.staging_dir = layout.staging_dir(pkg)

    @property
    def image_name(self) -> str:
        return self.pkg + IMAGE_SUFFIX

    @property
    def meta_name(self) -> str:
        return self.pkg + META_SUFFIX

    async def run(self) -> ArtifactResult:
        """
        Install the package unless it already is.

        Returns:
            Result with status installed, already_installed or deferred

        Raises:
            InstallError, OSError: Fetch, extraction or commit failed. Images
                committed before the failure stay in place.
        """
        if await self.layout.is_installed(self.pkg):
            logger.debug(f"{self.pkg} already installed")
            return ArtifactResult(name=self.pkg, status=ArtifactStatus.ALREADY_INSTALLED)

        if not await self._claim():
            logger.info(f"{self.pkg} is being installed by another task, deferring")
            if self.concurrent_install_wait > 0:
                await self._wait_for_commit()
            return ArtifactResult(name=self.pkg, status=ArtifactStatus.DEFERRED)

        logger.info(f"installing package {self.pkg!r} to root {self.layout.root}")

        await self._fetch()

        if self.first_install:
            await asyncio.to_thread(self._extract_config)

        await self._commit()
        await aiofiles.os.rmdir(self.staging_dir)

        return ArtifactResult(
            name=self.pkg,
            status=ArtifactStatus.INSTALLED,
            first_install=self.first_install
        )

    async def _claim(self) -> bool:
        """Atomically create the staging directory; False if it already exists."""
        try:
            await aiofiles.os.mkdir(self.staging_dir, 0o755)
        except FileExistsError:
            return False
        return True

    async def _fetch(self):
        # Image first, then metadata
        for name in (self.image_name, self.meta_name):
            n = await self.source.copy_to(f"pkg/{name}", self.staging_dir / name, self.counter)
            logger.debug(f"fetched {name} ({n} bytes) from {self.source.repo.url}")

    def _extract_config(self):
        reader = self.image_opener(self.staging_dir / self.image_name)
        try:
            extract_config(reader, self.layout.etc_dir, self.pkg, self.counter)
        finally:
            reader.close()

    async def _commit(self):
        # First meta, then image: the daemon considers the image canonical,
        # so it must go last.
        for name in (self.meta_name, self.image_name):
            await aiofiles.os.rename(self.staging_dir / name, self.layout.store_dir / name)

    async def _wait_for_commit(self):
        deadline = time.monotonic() + self.concurrent_install_wait
        while not await self.layout.is_installed(self.pkg):
            if time.monotonic() >= deadline:
                raise InstallError(
                    f"timed out after {self.concurrent_install_wait}s waiting for a "
                    f"concurrent install of {self.pkg}",
                    details={"package": self.pkg}
                )
            await asyncio.sleep(POLL_INTERVAL)
