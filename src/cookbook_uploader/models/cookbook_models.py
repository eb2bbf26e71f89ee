# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cookbook Data Models

Defines data structures for the upload pipeline including lockfile graph
entries, cookbook metadata, upload options and per-cookbook outcomes.
"""

from typing import List, Dict, Optional, Any, Mapping
from datetime import datetime, UTC
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from cookbook_uploader.core.errors import ConfigurationError


class UploadStatus(str, Enum):
    """Terminal state of a single cookbook upload"""
    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why a cookbook was skipped"""
    ALREADY_FROZEN = "already_frozen"


class GraphItem(BaseModel):
    """
    Entry of the lockfile graph.

    `dependencies` maps dependency name to its version constraint and keeps
    the order in which the lockfile declares them.
    """
    name: str
    version: str
    path: str
    dependencies: Dict[str, str] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "app",
                "version": "1.2.0",
                "path": "cookbooks/app",
                "dependencies": {"db": ">= 0.0.0"}
            }
        }


class LockfileDependency(BaseModel):
    """Top-level dependency declared by the Berksfile"""
    name: str
    groups: List[str] = Field(default_factory=lambda: ["default"])


class CookbookMetadata(BaseModel):
    """Cookbook metadata as held in metadata.json"""
    model_config = ConfigDict(extra="allow")

    name: str
    version: str
    description: Optional[str] = None
    long_description: Optional[str] = None
    maintainer: Optional[str] = None
    maintainer_email: Optional[str] = None
    license: Optional[str] = None
    dependencies: Dict[str, str] = Field(default_factory=dict)


class CookbookFile(BaseModel):
    """File entry of a cookbook manifest"""
    name: str
    path: str
    checksum: str  # md5 hex digest, as keyed by the store sandbox
    specificity: str = "default"


class UploadOptions(BaseModel):
    """
    Options for an upload run.

    `validate` is exposed as `run_validation` since BaseModel reserves the
    attribute name; the option key stays `validate`.
    """
    model_config = ConfigDict(populate_by_name=True)

    force: bool = False
    freeze: bool = True
    halt_on_frozen: bool = False
    run_validation: bool = Field(default=True, alias="validate")

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[Any, Any]] = None) -> "UploadOptions":
        """
        Build options from a flat mapping with loosely formatted keys.

        Keys are matched case-insensitively and `-` is treated as `_`, so
        "halt-on-frozen", "HALT_ON_FROZEN" and "halt_on_frozen" are the same.

        Raises:
            ConfigurationError: If a key is not a recognized option
        """
        allowed = {field.alias or name: name for name, field in cls.model_fields.items()}
        normalized = {}
        for key, value in (options or {}).items():
            option = str(key).strip().lower().replace("-", "_")
            if option not in allowed:
                raise ConfigurationError(
                    f"Unknown upload option: {key}",
                    details={"allowed": sorted(allowed)}
                )
            normalized[allowed[option]] = value
        return cls(**normalized)

    def merged(self, overrides: Optional[Mapping[Any, Any]] = None) -> "UploadOptions":
        """Return a copy with the given loosely keyed overrides applied."""
        if not overrides:
            return self
        base = {"validate" if name == "run_validation" else name: value
                for name, value in self.model_dump().items()}
        base.update({str(k).strip().lower().replace("-", "_"): v for k, v in overrides.items()})
        return UploadOptions.from_mapping(base)


class UploadOutcome(BaseModel):
    """Result of one cookbook upload attempt"""
    name: str
    version: str
    status: UploadStatus
    reason: Optional[SkipReason] = None
    error: Optional[str] = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "name": self.name,
            "version": self.version,
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "error": self.error,
            "recorded_at": self.recorded_at.isoformat(),
        }
