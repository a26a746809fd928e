# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Artifact Sources

Single responsibility: open a named artifact in a repository, telling
"this repository does not carry it" apart from "this repository is broken".
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import httpx

from . import __version__
from .errors import ArtifactNotFoundError, TransportError
from .models import RepoConfig
from .progress import ByteCounter

logger = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024


class ArtifactSource(ABC):
    """A repository from which named artifacts can be streamed"""

    def __init__(self, repo: RepoConfig):
        self.repo = repo

    @abstractmethod
    def open(self, path: str):
        """
        Open an artifact for streaming.

        Used as ``async with source.open("pkg/x.meta") as chunks``, where
        chunks is an async iterator of bytes.

        Raises:
            ArtifactNotFoundError: The repository does not carry the artifact
            TransportError: The repository could not be read
        """

    async def read(self, path: str) -> bytes:
        """Read a whole (small) artifact into memory"""
        buf = bytearray()
        async with self.open(path) as chunks:
            async for chunk in chunks:
                buf.extend(chunk)
        return bytes(buf)

    async def copy_to(self, path: str, dest: Path, counter: Optional[ByteCounter] = None) -> int:
        """
        Stream an artifact into a local file.

        Args:
            path: Artifact path relative to the repository
            dest: Destination file (created or truncated)
            counter: Byte counter credited with every chunk written

        Returns:
            Number of bytes written
        """
        written = 0
        async with self.open(path) as chunks:
            async with aiofiles.open(dest, "wb") as out:
                async for chunk in chunks:
                    await out.write(chunk)
                    written += len(chunk)
                    if counter is not None:
                        counter.add(len(chunk))
        return written


class LocalSource(ArtifactSource):
    """Repository backed by a directory (plain path or file:// URL)"""

    def __init__(self, repo: RepoConfig):
        super().__init__(repo)
        location = repo.url
        if location.startswith("file://"):
            location = location[len("file://"):]
        self.base_dir = Path(location)

    @asynccontextmanager
    async def open(self, path: str):
        full_path = self.base_dir / path.lstrip("/")
        try:
            f = await aiofiles.open(full_path, "rb")
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ArtifactNotFoundError(self.repo.url, path) from e
        try:
            yield _iter_file(f)
        finally:
            await f.close()


async def _iter_file(f) -> AsyncIterator[bytes]:
    while True:
        chunk = await f.read(CHUNK_SIZE)
        if not chunk:
            return
        yield chunk


class HTTPSource(ArtifactSource):
    """Repository served over HTTP(S): artifacts live at ``<base>/<path>``"""

    def __init__(self, repo: RepoConfig, client: httpx.AsyncClient):
        super().__init__(repo)
        self.client = client

    def url_for(self, path: str) -> str:
        return f"{self.repo.url.rstrip('/')}/{path.lstrip('/')}"

    @asynccontextmanager
    async def open(self, path: str):
        url = self.url_for(path)
        try:
            async with self.client.stream("GET", url) as response:
                if response.status_code == 404:
                    raise ArtifactNotFoundError(self.repo.url, path)
                if response.status_code != 200:
                    raise TransportError(
                        f"GET {url}: HTTP status {response.status_code} {response.reason_phrase}",
                        repo=self.repo.url,
                        details={"status_code": response.status_code}
                    )
                yield response.aiter_bytes(CHUNK_SIZE)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url}: {e}", repo=self.repo.url) from e


def make_http_client(timeout: float = 60.0, **kwargs) -> httpx.AsyncClient:
    """HTTP client shared by all HTTP repositories of one run"""
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": f"roinstall/{__version__}"},
        follow_redirects=True,
        **kwargs
    )


def open_source(repo: RepoConfig, client: Optional[httpx.AsyncClient] = None) -> ArtifactSource:
    """
    Build the source for a repository.

    Args:
        repo: Repository configuration
        client: HTTP client, required for http(s) repositories

    Returns:
        LocalSource or HTTPSource
    """
    if repo.is_http:
        if client is None:
            raise ValueError(f"HTTP repository {repo.url} needs an HTTP client")
        return HTTPSource(repo, client)
    return LocalSource(repo)
