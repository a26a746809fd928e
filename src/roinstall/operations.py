# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Install Operations

Single responsibility: drive concurrent installation of requested packages
and their runtime dependencies into a root, then refresh the daemon.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Dict, List, Optional, Sequence

import aiofiles.os
import httpx

from .daemon import DaemonNotifier
from .errors import ConfigurationError, InstallError
from .image import open_image
from .models import ArtifactResult, ArtifactStatus, InstallReport, InstallSet, RepoConfig
from .naming import DEFAULT_ARCH, likely_fully_specified
from .progress import ByteCounter, Stopwatch, format_throughput
from .resolver import DependencyResolver, MetadataResolver
from .source import ArtifactSource, make_http_client, open_source
from .store import RootLayout
from .transactions import ImageOpener, InstallTransaction

logger = logging.getLogger(__name__)


class WaitGroup:
    """
    Runs tasks to completion and remembers the first one that failed.

    Failing tasks do not cancel their siblings; wait() raises the first
    error only after every task has finished.
    """

    def __init__(self):
        self._tasks: List[asyncio.Future] = []
        self.first_error: Optional[BaseException] = None

    def go(self, coro: Awaitable):
        self._tasks.append(asyncio.ensure_future(self._run(coro)))

    async def _run(self, coro: Awaitable):
        try:
            return await coro
        except Exception as e:
            if self.first_error is None:
                self.first_error = e
            raise

    async def wait(self) -> list:
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        if self.first_error is not None:
            raise self.first_error
        return results


class InstallOperations:
    """Installs packages into one root"""

    def __init__(
        self,
        root: Path,
        repos: Sequence[RepoConfig],
        arch: str = DEFAULT_ARCH,
        http_client: Optional[httpx.AsyncClient] = None,
        http_timeout: float = 60.0,
        image_opener: Optional[ImageOpener] = None,
        concurrent_install_wait: float = 0.0,
        notifier: Optional[DaemonNotifier] = None
    ):
        """
        Initialize install operations.

        Args:
            root: Target root directory ("/" for the running system)
            repos: Repositories in search order
            arch: Architecture appended to unqualified package names
            http_client: Shared client for HTTP repositories; one is created
                per run if omitted
            http_timeout: Timeout for a created HTTP client
            image_opener: Opens staged images for config extraction
                (SquashFS reader by default)
            concurrent_install_wait: See InstallTransaction
            notifier: Daemon notifier (defaults to the root's control socket)
        """
        self.layout = RootLayout(root)
        self.repos = [r for r in repos if r.enabled]
        self.arch = arch
        self.http_client = http_client
        self.http_timeout = http_timeout
        self.image_opener = image_opener or open_image
        self.concurrent_install_wait = concurrent_install_wait
        self.notifier = notifier or DaemonNotifier(self.layout)

        # Per-run state, reset by install()
        self.counter = ByteCounter()
        self._inflight: Dict[str, asyncio.Future] = {}
        self._report: Optional[InstallReport] = None

    async def install(self, packages: Sequence[str]) -> InstallReport:
        """
        Install packages and their runtime dependencies.

        Args:
            packages: Requested package names

        Returns:
            Report of the run

        Raises:
            ConfigurationError: No repositories configured
            PackageNotFoundError: A requested package is in no repository
            InstallError: An artifact failed to install (first failure only;
                packages committed by other tasks stay installed)
            DaemonUnreachableError: The daemon socket exists but the rescan failed
        """
        if not packages:
            raise ValueError("no packages to install")
        if not self.repos:
            raise ConfigurationError("no repos configured")

        self.counter = ByteCounter()
        self._inflight = {}
        report = InstallReport(root=str(self.layout.root), requested=list(packages))
        self._report = report

        # TODO: lock the store so only one process modifies roimg at a time;
        # resetting the staging area discards a concurrent run's downloads.
        await aiofiles.os.makedirs(self.layout.store_dir, exist_ok=True)
        await self.layout.reset_staging_area()

        stopwatch = Stopwatch()

        client = self.http_client
        owns_client = client is None and any(r.is_http for r in self.repos)
        if owns_client:
            client = make_http_client(self.http_timeout)

        try:
            sources = [open_source(repo, client) for repo in self.repos]
            resolver = DependencyResolver(MetadataResolver(sources), arch=self.arch)

            group = WaitGroup()
            for pkg in packages:
                group.go(self._install_transitively(resolver, pkg))
            await group.wait()
        finally:
            if owns_client:
                await client.aclose()

        report.daemon_notified = await self.notifier.notify()

        report.total_bytes = self.counter.total
        report.elapsed_seconds = stopwatch.elapsed
        logger.info(format_throughput(report.total_bytes, report.elapsed_seconds))
        return report

    async def _install_transitively(self, resolver: DependencyResolver, pkg: str):
        install_set = await self._installed_set(pkg)
        if install_set is not None:
            logger.info(f"{pkg} and its runtime dependencies are already installed")
            self._report.install_sets.append(install_set)
            self._report.results.extend(
                ArtifactResult(name=name, status=ArtifactStatus.ALREADY_INSTALLED)
                for name in install_set.artifacts
            )
            return

        install_set, source = await resolver.expand(pkg)
        self._report.install_sets.append(install_set)

        # Download all packages with maximum concurrency
        group = WaitGroup()
        for artifact in install_set.artifacts:
            group.go(self._install_artifact(artifact, source))
        await group.wait()

    async def _installed_set(self, request: str) -> Optional[InstallSet]:
        """
        Expand a fully qualified request from committed metadata.

        Returns None unless the package and every runtime dependency it
        lists are installed; the request then goes through the repositories.
        """
        if not likely_fully_specified(request) or not await self.layout.is_installed(request):
            return None
        meta = await self.layout.read_meta(request)
        if meta is None:
            return None

        artifacts = list(dict.fromkeys([request, *meta.runtime_dep]))
        for name in artifacts[1:]:
            if not await self.layout.is_installed(name):
                return None

        return InstallSet(
            request=request,
            package=request,
            version=meta.version,
            repo=RepoConfig(name="installed", url=str(self.layout.store_dir)),
            artifacts=artifacts
        )

    async def _install_artifact(self, pkg: str, source: ArtifactSource) -> ArtifactResult:
        """Install pkg once per run, however many requests share it."""
        task = self._inflight.get(pkg)
        if task is None:
            task = asyncio.ensure_future(self._run_transaction(pkg, source))
            self._inflight[pkg] = task
        return await task

    async def _run_transaction(self, pkg: str, source: ArtifactSource) -> ArtifactResult:
        try:
            transaction = InstallTransaction(
                self.layout,
                source,
                pkg,
                self.counter,
                first_install=self.layout.is_first_install(pkg),
                image_opener=self.image_opener,
                concurrent_install_wait=self.concurrent_install_wait
            )
            result = await transaction.run()
        except Exception as e:
            logger.error(f"installing {pkg} failed: {e}")
            raise InstallError(f"installing {pkg}: {e}", details={"package": pkg}) from e

        self._report.results.append(result)
        return result
