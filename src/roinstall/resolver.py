# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Metadata and Dependency Resolution

Single responsibility: turn a requested package name into the artifacts to
install and the repository to fetch them from.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from .errors import ArtifactNotFoundError, MetadataError, PackageNotFoundError
from .models import InstallSet, PackageMeta
from .naming import DEFAULT_ARCH, has_arch_suffix, qualify_name, version_key
from .source import ArtifactSource
from .store import META_SUFFIX

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Finds the highest published version of a package across repositories"""

    def __init__(self, sources: Sequence[ArtifactSource]):
        """
        Initialize metadata resolver.

        Args:
            sources: Repositories in configured order
        """
        self.sources = list(sources)

    async def _fetch(self, source: ArtifactSource, pkg: str) -> Optional[PackageMeta]:
        path = f"pkg/{pkg}{META_SUFFIX}"
        try:
            raw = await source.read(path)
        except ArtifactNotFoundError:
            logger.debug(f"{pkg} not carried by {source.repo.url}")
            return None

        origin = f"{source.repo.url}/{path}"
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MetadataError(f"malformed metadata in {origin}: {e}", source=origin) from e
        return PackageMeta.from_text(text, source=origin)

    async def resolve(self, pkg: str) -> Tuple[PackageMeta, ArtifactSource]:
        """
        Resolve metadata for an architecture-qualified package name.

        Every repository is queried; the highest version wins and ties go to
        the repository configured first.

        Args:
            pkg: Package name, e.g. "bash-amd64" or "bash-amd64-5.0-4"

        Returns:
            Winning metadata and the repository it came from

        Raises:
            PackageNotFoundError: If no repository carries the package
            TransportError: If a repository fails with anything but not-found
            MetadataError: If a metadata document is malformed
        """
        # Every fetch finishes before any error is raised; errors are reported
        # in repository order, not completion order.
        metas = await asyncio.gather(
            *(self._fetch(source, pkg) for source in self.sources),
            return_exceptions=True
        )
        for meta in metas:
            if isinstance(meta, BaseException):
                raise meta

        best: Optional[Tuple[PackageMeta, ArtifactSource]] = None
        for meta, source in zip(metas, self.sources):
            if meta is None:
                continue
            # Strictly greater: earlier repositories win ties
            if best is None or version_key(meta.version) > version_key(best[0].version):
                best = (meta, source)

        if best is None:
            raise PackageNotFoundError(pkg)
        return best


class DependencyResolver:
    """Expands a requested package into its installation set (one level deep)"""

    def __init__(self, metadata_resolver: MetadataResolver, arch: str = DEFAULT_ARCH):
        self.metadata_resolver = metadata_resolver
        self.arch = arch

    async def expand(self, request: str) -> Tuple[InstallSet, ArtifactSource]:
        """
        Resolve a requested package to its fully qualified name plus the
        runtime dependencies listed in its metadata.

        Dependencies are installed as named; their own metadata is not
        consulted, since published metadata already lists the runtime closure.

        Args:
            request: Package name as given by the user

        Returns:
            The installation set and the repository that won resolution
        """
        pkg = qualify_name(request, self.arch)
        meta, source = await self.metadata_resolver.resolve(pkg)

        if has_arch_suffix(pkg):
            pkg = f"{pkg}-{meta.version}"

        artifacts = self._deduplicate([pkg, *meta.runtime_dep])
        logger.info(f"resolved {request} to {artifacts}")

        return InstallSet(
            request=request,
            package=pkg,
            version=meta.version,
            repo=source.repo,
            artifacts=artifacts
        ), source

    def _deduplicate(self, names: List[str]) -> List[str]:
        """
        Remove duplicate names from list (keep first occurrence).

        Args:
            names: Package names

        Returns:
            Deduplicated list
        """
        seen = set()
        unique = []
        for name in names:
            if name not in seen:
                seen.add(name)
                unique.append(name)
        return unique
