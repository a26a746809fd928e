# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures and Utilities

Provides on-disk repositories, an HTTP repository backed by
httpx.MockTransport, and an in-memory package image reader.
"""

import pytest
import httpx
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from roinstall.image import EntryKind, ImageEntry
from roinstall.models import PackageMeta, RepoConfig


# ============================================================================
# In-memory Package Images
# ============================================================================

@dataclass
class Link:
    """Symlink node in a fake image tree"""
    target: str


class Device:
    """Device node in a fake image tree (unsupported by the extractor)"""


class FakeImage:
    """
    ImageReader over a nested dict.

    Directories are dicts, regular files are bytes, symlinks are Link and
    anything else is Device.
    """

    def __init__(self, tree: dict):
        self.tree = tree
        self.closed = False

    def _entry(self, name: str, node) -> ImageEntry:
        if isinstance(node, dict):
            return ImageEntry(name=name, kind=EntryKind.DIRECTORY, mode=0o755, handle=node)
        if isinstance(node, bytes):
            return ImageEntry(name=name, kind=EntryKind.FILE, mode=0o644, handle=node)
        if isinstance(node, Link):
            return ImageEntry(name=name, kind=EntryKind.SYMLINK, mode=0o777, handle=node)
        return ImageEntry(name=name, kind=EntryKind.OTHER, mode=0o600, handle=node)

    def root(self) -> ImageEntry:
        return self._entry("", self.tree)

    def listdir(self, entry: ImageEntry) -> List[ImageEntry]:
        return [self._entry(name, node) for name, node in sorted(entry.handle.items())]

    def iter_bytes(self, entry: ImageEntry):
        # Two chunks, to exercise chunked copies
        data = entry.handle
        half = len(data) // 2
        return iter([data[:half], data[half:]])

    def readlink(self, entry: ImageEntry) -> str:
        return entry.handle.target

    def close(self):
        self.closed = True


class FakeImageOpener:
    """Maps staged image contents to fake image trees"""

    def __init__(self):
        self.trees: Dict[bytes, dict] = {}
        self.opened: List[Path] = []

    def __call__(self, path: Path) -> FakeImage:
        self.opened.append(Path(path))
        return FakeImage(self.trees.get(Path(path).read_bytes(), {}))


@pytest.fixture
def image_opener():
    """Image opener that never touches a real SquashFS decoder"""
    return FakeImageOpener()


# ============================================================================
# Repositories
# ============================================================================

class RepoBuilder:
    """Publishes packages into a directory laid out like a repository"""

    def __init__(self, path: Path):
        self.path = path
        (self.path / "pkg").mkdir(parents=True, exist_ok=True)

    @property
    def config(self) -> RepoConfig:
        return RepoConfig(name=self.path.name, url=str(self.path))

    def add(self, name: str, version: str, deps: Iterable[str] = (), image: Optional[bytes] = None) -> bytes:
        """Publish a fully qualified artifact; returns its image bytes."""
        image = image if image is not None else f"image of {name}".encode()
        meta = PackageMeta(version=version, runtime_dep=list(deps))
        (self.path / "pkg" / f"{name}.squashfs").write_bytes(image)
        (self.path / "pkg" / f"{name}.meta").write_text(meta.to_text())
        return image

    def publish(self, base: str, version: str, deps: Iterable[str] = (), image: Optional[bytes] = None) -> str:
        """
        Publish ``<base>-<version>`` and point the unversioned ``<base>.meta``
        at it. Returns the fully qualified name.
        """
        full = f"{base}-{version}"
        self.add(full, version, deps, image)
        meta = PackageMeta(version=version, runtime_dep=list(deps))
        (self.path / "pkg" / f"{base}.meta").write_text(meta.to_text())
        return full


@pytest.fixture
def repo(tmp_path):
    """Local directory repository"""
    return RepoBuilder(tmp_path / "repo")


@pytest.fixture
def make_repo(tmp_path):
    """Factory for additional local repositories"""
    def _make(name: str) -> RepoBuilder:
        return RepoBuilder(tmp_path / name)
    return _make


@pytest.fixture
def root(tmp_path):
    """Empty installation root"""
    path = tmp_path / "root"
    path.mkdir()
    return path


class HTTPRepo:
    """Serves a RepoBuilder directory through httpx.MockTransport, counting requests"""

    def __init__(self, builder: RepoBuilder, base_url: str = "https://repo.example.org/2020-02-25"):
        self.builder = builder
        self.base_url = base_url
        self.requests: List[str] = []
        self.fail_with: Optional[int] = None

    @property
    def config(self) -> RepoConfig:
        return RepoConfig(name="http", url=self.base_url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with)
        prefix = httpx.URL(self.base_url).path.rstrip("/") + "/"
        rel = request.url.path[len(prefix):]
        path = self.builder.path / rel
        if not path.is_file():
            return httpx.Response(404)
        return httpx.Response(200, content=path.read_bytes())

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def http_repo(repo):
    """HTTP repository serving the local `repo` fixture"""
    return HTTPRepo(repo)
