# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Image Reader

The boundary between the installer and the SquashFS decoder. The installer
only lists directories, streams regular files and reads symlink targets;
decoding is left to PySquashfsImage, which reads the image file with
random access instead of loading it into memory.
"""

import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Protocol

from PySquashfsImage import SquashFsImage


class EntryKind(str, Enum):
    """Kinds of filesystem entries the installer distinguishes"""
    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True)
class ImageEntry:
    """A directory entry inside a package image"""
    name: str
    kind: EntryKind
    mode: int  # Permission bits
    handle: Any  # Reader-specific node

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


class ImageReader(Protocol):
    """Read-only access to a package image"""

    def root(self) -> ImageEntry:
        ...

    def listdir(self, entry: ImageEntry) -> List[ImageEntry]:
        ...

    def iter_bytes(self, entry: ImageEntry) -> Iterator[bytes]:
        ...

    def readlink(self, entry: ImageEntry) -> str:
        ...

    def close(self) -> None:
        ...


class SquashfsImageReader:
    """ImageReader over a SquashFS file"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._image = SquashFsImage.from_file(str(self.path))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _entry(self, node) -> ImageEntry:
        if node.is_dir:
            kind = EntryKind.DIRECTORY
        elif node.is_symlink:
            kind = EntryKind.SYMLINK
        elif node.is_file:
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        return ImageEntry(name=node.name, kind=kind, mode=stat.S_IMODE(node.mode), handle=node)

    def root(self) -> ImageEntry:
        return self._entry(self._image.root)

    def listdir(self, entry: ImageEntry) -> List[ImageEntry]:
        if not entry.is_dir:
            raise NotADirectoryError(f"{self.path}: {entry.name} is not a directory")
        return [self._entry(child) for child in entry.handle.iterdir()]

    def iter_bytes(self, entry: ImageEntry) -> Iterator[bytes]:
        return entry.handle.iter_bytes()

    def readlink(self, entry: ImageEntry) -> str:
        return entry.handle.readlink()

    def close(self) -> None:
        self._image.close()


def open_image(path: Path) -> ImageReader:
    """Default image opener used by install transactions"""
    return SquashfsImageReader(path)
