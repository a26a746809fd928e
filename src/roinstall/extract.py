# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Config Extractor

Single responsibility: mirror a package image's /etc into the live root
the first time the package is installed.

Blocking; the install transaction runs it in a worker thread.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .image import EntryKind, ImageEntry, ImageReader
from .progress import ByteCounter

logger = logging.getLogger(__name__)


def extract_config(
    reader: ImageReader,
    etc_dir: Path,
    pkg: str,
    counter: Optional[ByteCounter] = None
) -> bool:
    """
    Copy the image's top-level ``etc`` directory into etc_dir.

    Args:
        reader: Open image
        etc_dir: Destination, usually <root>/etc
        pkg: Package name (for logging)
        counter: Byte counter credited with copied file sizes

    Returns:
        True if the image had an etc directory
    """
    for entry in reader.listdir(reader.root()):
        if entry.name != "etc":
            continue
        if not entry.is_dir:
            logger.warning(f"{pkg}: etc is a {entry.kind.value}, not a directory; skipping")
            return False
        logger.info(f"copying {pkg}/etc")
        unpack_dir(reader, entry, Path(etc_dir), counter)
        return True
    return False


def unpack_dir(
    reader: ImageReader,
    entry: ImageEntry,
    dest: Path,
    counter: Optional[ByteCounter] = None
):
    """Recursively mirror a directory of the image into dest"""
    dest.mkdir(mode=0o755, parents=True, exist_ok=True)

    for child in reader.listdir(entry):
        if not _safe_name(child.name):
            logger.error(f"refusing unsafe entry name {child.name!r} under {dest}")
            continue

        target = dest / child.name
        if child.kind == EntryKind.DIRECTORY:
            unpack_dir(reader, child, target, counter)
        elif child.kind == EntryKind.SYMLINK:
            replace_symlink(reader.readlink(child), target)
        elif child.kind == EntryKind.FILE:
            n = _copy_file(reader, child, target)
            if counter is not None:
                counter.add(n)
        else:
            logger.error(f"unsupported file type in image: {target} ({child.kind.value}, mode {child.mode:o})")


def replace_symlink(link_target: str, path: Path):
    """
    Create path as a symlink to link_target, replacing whatever non-directory
    is in the way. A link already pointing at link_target is left alone.

    Raises:
        IsADirectoryError: If path is an existing (non-symlink) directory
    """
    if path.is_symlink():
        if os.readlink(path) == link_target:
            return
    elif path.is_dir():
        raise IsADirectoryError(f"cannot replace directory {path} with a symlink")

    tmp = path.with_name(f".{path.name}.roinstall-tmp")
    if tmp.is_symlink() or tmp.exists():
        tmp.unlink()
    os.symlink(link_target, tmp)
    os.replace(tmp, path)


def _copy_file(reader: ImageReader, entry: ImageEntry, target: Path) -> int:
    # Never write through an existing symlink
    if target.is_symlink():
        target.unlink()

    written = 0
    with open(target, "wb") as f:
        for chunk in reader.iter_bytes(entry):
            f.write(chunk)
            written += len(chunk)
    os.chmod(target, entry.mode)
    return written


def _safe_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name
