# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Installer Data Models

Defines data structures for repositories, package metadata documents,
installation sets and the per-run install report.
"""

from collections.abc import Hashable
from typing import List, Optional
from enum import Enum

import yaml
from yaml.constructor import ConstructorError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import MetadataError


# Keys that may repeat, textproto style; their values are concatenated
REPEATED_KEYS = frozenset({"runtime_dep"})


class MetaLoader(yaml.BaseLoader):
    """
    BaseLoader for metadata documents.

    Repeated ``runtime_dep`` keys collect into one list, as in the
    ``runtime_dep: "..."`` per line form. Any other duplicate key is an error.
    """

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )

        mapping = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                raise ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    "found unhashable key", key_node.start_mark
                )
            value = self.construct_object(value_node, deep=deep)

            if key not in mapping:
                mapping[key] = value
            elif key in REPEATED_KEYS:
                mapping[key] = _as_list(mapping[key]) + _as_list(value)
            else:
                raise ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark
                )
        return mapping


def _as_list(value) -> list:
    if isinstance(value, list):
        return list(value)
    if isinstance(value, str) and not value.strip():
        return []
    return [value]


class ArtifactStatus(str, Enum):
    """Outcome of a single artifact install"""
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"
    DEFERRED = "deferred"


class RepoConfig(BaseModel):
    """Repository configuration from repos.conf (or --repo)"""
    name: str
    url: str  # Directory path, file:// URL or http(s):// base URL
    enabled: bool = True

    @property
    def is_http(self) -> bool:
        return self.url.startswith("http://") or self.url.startswith("https://")


class PackageMeta(BaseModel):
    """
    Metadata document published next to every package image.

    Immutable once a repository publishes it. Dependencies are fully
    qualified package names and are installed exactly as named.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "version": "5.0-4",
                "runtime_dep": ["glibc-amd64-2.31-4", "ncurses-amd64-6.1-8"]
            }
        }
    )

    version: str
    runtime_dep: List[str] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _version_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("version cannot be empty")
        return value.strip()

    @field_validator("runtime_dep", mode="before")
    @classmethod
    def _deps_as_list(cls, value):
        # A lone dependency may be written as a scalar
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @classmethod
    def from_text(cls, text: str, source: Optional[str] = None) -> "PackageMeta":
        """
        Parse a metadata document.

        Scalars are kept as strings (BaseLoader), so ``version: 1.10`` stays
        "1.10" instead of becoming the float 1.1. Dependencies may be given
        as a list or as repeated ``runtime_dep`` lines.

        Args:
            text: Document contents
            source: Where the document came from, for error messages

        Returns:
            Parsed metadata

        Raises:
            MetadataError: If the document is not a valid metadata mapping,
                or repeats a key other than runtime_dep
        """
        try:
            data = yaml.load(text, Loader=MetaLoader)
        except yaml.YAMLError as e:
            raise MetadataError(f"malformed metadata in {source}: {e}", source=source) from e

        if not isinstance(data, dict):
            raise MetadataError(
                f"malformed metadata in {source}: expected a mapping, got {type(data).__name__}",
                source=source
            )

        try:
            return cls(**data)
        except ValidationError as e:
            raise MetadataError(f"malformed metadata in {source}: {e}", source=source) from e

    def to_text(self) -> str:
        """Serialize back to the on-disk YAML form"""
        return yaml.safe_dump(
            {"version": self.version, "runtime_dep": list(self.runtime_dep)},
            sort_keys=False
        )


class InstallSet(BaseModel):
    """Artifacts to install for one requested package"""
    request: str
    package: str  # Fully qualified name
    version: str
    repo: RepoConfig
    artifacts: List[str] = Field(default_factory=list)


class ArtifactResult(BaseModel):
    """Record of one artifact transaction"""
    name: str
    status: ArtifactStatus
    first_install: bool = False


class InstallReport(BaseModel):
    """Summary of one install run"""
    root: str
    requested: List[str]
    install_sets: List[InstallSet] = Field(default_factory=list)
    results: List[ArtifactResult] = Field(default_factory=list)
    total_bytes: int = 0
    elapsed_seconds: float = 0.0
    daemon_notified: bool = False

    @property
    def installed(self) -> List[str]:
        return [r.name for r in self.results if r.status == ArtifactStatus.INSTALLED]
