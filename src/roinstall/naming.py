# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package names and versions

Fully qualified package names have the form ``<name>-<arch>-<version>``,
e.g. ``bash-amd64-5.0-4``, where the version is ``<upstream>-<revision>``.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

KNOWN_ARCHES = ("amd64", "i686")
DEFAULT_ARCH = "amd64"

_FULLY_SPECIFIED = re.compile(
    r"^(?P<name>.+?)-(?P<arch>" + "|".join(KNOWN_ARCHES) + r")-(?P<version>.+)$"
)
_VERSION_PART = re.compile(r"\d+|[A-Za-z]+")


@dataclass(frozen=True)
class PackageRef:
    """A package name with optional architecture and version"""
    name: str
    arch: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def parse(cls, pkg: str) -> "PackageRef":
        if not pkg or not pkg.strip():
            raise ValueError("package name cannot be empty")
        pkg = pkg.strip()
        m = _FULLY_SPECIFIED.match(pkg)
        if m:
            return cls(name=m.group("name"), arch=m.group("arch"), version=m.group("version"))
        arch = has_arch_suffix(pkg)
        if arch:
            return cls(name=pkg[: -len(arch) - 1], arch=arch)
        return cls(name=pkg)

    @property
    def base(self) -> str:
        """``<name>-<arch>``, the version-independent identity"""
        return f"{self.name}-{self.arch}" if self.arch else self.name

    def __str__(self) -> str:
        if self.version:
            return f"{self.base}-{self.version}"
        return self.base


def has_arch_suffix(pkg: str) -> Optional[str]:
    """Return the architecture if pkg ends in ``-<arch>``, else None."""
    for arch in KNOWN_ARCHES:
        if pkg.endswith("-" + arch):
            return arch
    return None


def likely_fully_specified(pkg: str) -> bool:
    return _FULLY_SPECIFIED.match(pkg) is not None


def qualify_name(pkg: str, arch: str = DEFAULT_ARCH) -> str:
    """
    Append the target architecture to names that carry neither an
    architecture suffix nor a version.

    Args:
        pkg: Requested package name
        arch: Target architecture

    Returns:
        Name to look up in repositories
    """
    if has_arch_suffix(pkg) is None and not likely_fully_specified(pkg):
        return f"{pkg}-{arch}"
    return pkg


def version_key(version: str) -> Tuple:
    """
    Sort key for version strings.

    Upstream components compare numerically where numeric and lexically
    otherwise; a trailing ``-<digits>`` is the distribution revision.
    """
    upstream, revision = version, -1
    head, sep, tail = version.rpartition("-")
    if sep and head and tail.isdigit():
        upstream, revision = head, int(tail)

    parts = []
    for part in _VERSION_PART.findall(upstream):
        if part.isdigit():
            parts.append((1, int(part), ""))
        else:
            parts.append((0, 0, part))
    return (tuple(parts), revision)
