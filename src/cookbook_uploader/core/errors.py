# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the cookbook uploader.

All exceptions inherit from UploaderError for consistent error handling.
"""

from typing import Dict, List, Optional


class UploaderError(Exception):
    """Base exception for all uploader errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize uploader error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for reporting."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class UnknownPackageError(UploaderError):
    """Cookbook name not present in the lockfile graph."""

    def __init__(self, name: str, details: Optional[dict] = None):
        super().__init__(f"Cookbook not found in lockfile: {name}", details=details)
        self.name = name


class DependencyCycleError(UploaderError):
    """Dependency traversal reached a cookbook already on the active path."""

    def __init__(self, path: List[str]):
        """
        Initialize cycle error.

        Args:
            path: Cookbook names forming the cycle, first and last are equal
        """
        super().__init__(
            f"Circular dependency detected: {' -> '.join(path)}",
            details={"path": list(path)}
        )
        self.path = list(path)


class ValidationError(UploaderError):
    """One or more cookbooks failed local validation."""

    def __init__(self, problems: Dict[str, List[str]]):
        """
        Initialize validation error.

        Args:
            problems: Problems found, keyed by cookbook name
        """
        summary = "; ".join(
            f"{name}: {', '.join(issues)}" for name, issues in problems.items()
        )
        super().__init__(f"Cookbook validation failed ({summary})", details=problems)
        self.problems = problems


class FrozenPackageError(UploaderError):
    """Cookbook version is frozen on the store and the run must halt."""

    def __init__(self, name: str, version: Optional[str] = None):
        label = f"{name} ({version})" if version else name
        super().__init__(
            f"Cookbook {label} is frozen on the store; halting upload",
            details={"name": name, "version": version}
        )
        self.name = name
        self.version = version


class UploadError(UploaderError):
    """Store rejected an upload for a reason other than a frozen version."""

    def __init__(self, name: str, cause: Exception):
        super().__init__(
            f"Failed to upload cookbook {name}: {cause}",
            details={"name": name, "cause": str(cause)}
        )
        self.name = name
        self.cause = cause


class ConfigurationError(UploaderError):
    """Configuration or option error."""

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


class StoreError(UploaderError):
    """Transport or protocol failure talking to the cookbook store."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.status_code = status_code


class CookbookFrozenError(StoreError):
    """Store refused an upload because the version is frozen (HTTP 409)."""

    def __init__(self, name: str, version: str):
        super().__init__(
            f"Cookbook {name} version {version} is frozen",
            status_code=409,
            details={"name": name, "version": version}
        )
        self.name = name
        self.version = version
