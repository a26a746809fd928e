# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for roinstall.

All exceptions inherit from InstallError for consistent error handling.
"""

from typing import Optional


class InstallError(Exception):
    """Base exception for all roinstall errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize install error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ArtifactNotFoundError(InstallError):
    """A repository does not carry the requested artifact (HTTP 404 or missing file)."""

    def __init__(self, repo: str, path: str, details: Optional[dict] = None):
        """
        Initialize artifact not found error.

        Args:
            repo: Repository location
            path: Artifact path relative to the repository
            details: Additional error details
        """
        super().__init__(f"{path} not found in {repo}", details=details)
        self.repo = repo
        self.path = path


class PackageNotFoundError(InstallError):
    """No configured repository carries the package."""

    def __init__(self, package: str, details: Optional[dict] = None):
        super().__init__(f"package {package} not found on any configured repository", details=details)
        self.package = package


class TransportError(InstallError):
    """Repository is broken: non-404 HTTP status or connection failure."""

    def __init__(self, message: str, repo: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.repo = repo


class MetadataError(InstallError):
    """Metadata document failed to parse."""

    def __init__(self, message: str, source: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize metadata error.

        Args:
            message: Parse error message
            source: Where the document came from (repository path or file)
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.source = source


class DaemonUnreachableError(InstallError):
    """Control socket exists but the rescan call failed."""

    def __init__(self, socket_path: str, cause: str, details: Optional[dict] = None):
        super().__init__(f"daemon at {socket_path} unreachable: {cause}", details=details)
        self.socket_path = socket_path


class ConfigurationError(InstallError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize configuration error.

        Args:
            message: Configuration error message
            config_file: Configuration file path
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.config_file = config_file
