# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cached Cookbooks

Single responsibility: Represent a resolved cookbook on disk and build the
versioned unit that is uploaded to the store
"""

import fnmatch
import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from cookbook_uploader.core.errors import ValidationError
from cookbook_uploader.models.cookbook_models import CookbookFile, CookbookMetadata

logger = logging.getLogger(__name__)

METADATA_JSON = "metadata.json"
METADATA_YAML = "metadata.yaml"
CHEFIGNORE = "chefignore"


class Chefignore:
    """Glob patterns from a cookbook's chefignore file"""

    def __init__(self, cookbook_path: Path):
        self.patterns: List[str] = []
        ignore_file = cookbook_path / CHEFIGNORE
        if ignore_file.is_file():
            for line in ignore_file.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    self.patterns.append(line)

    def ignored(self, relative_path: str) -> bool:
        """Whether a path relative to the cookbook root is ignored"""
        return any(fnmatch.fnmatch(relative_path, pattern) for pattern in self.patterns)


class CookbookVersion:
    """
    The versioned unit sent to the store.

    Holds the cookbook metadata (mutable so upload-time defaults can be
    applied), the file manifest and the frozen flag requested for upload.
    """

    def __init__(self, metadata: CookbookMetadata, root: Path, files: List[CookbookFile]):
        self.metadata = metadata
        self.root = root
        self.files = files
        self.frozen = False

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def version(self) -> str:
        return self.metadata.version

    def freeze_version(self):
        """Ask the store to mark this version immutable on upload"""
        self.frozen = True

    def checksums(self) -> Dict[str, Path]:
        """Absolute file path keyed by md5 checksum"""
        return {f.checksum: self.root / f.path for f in self.files}

    def manifest(self) -> Dict:
        """Cookbook manifest as sent to the store"""
        return {
            "name": f"{self.name}-{self.version}",
            "cookbook_name": self.name,
            "version": self.version,
            "frozen?": self.frozen,
            "metadata": self.metadata.model_dump(),
            "all_files": [f.model_dump() for f in self.files],
        }


class CachedCookbook:
    """A cookbook resolved from the lockfile, backed by a source directory"""

    def __init__(self, name: str, version: str, path: Path):
        """
        Initialize cached cookbook.

        Args:
            name: Cookbook name
            version: Locked version
            path: Cookbook source directory
        """
        self.name = name
        self.version = version
        self.path = Path(path)
        self.frozen = False
        self.compiled_metadata: Optional[Path] = None
        self._metadata: Optional[CookbookMetadata] = None
        self._cookbook_version: Optional[CookbookVersion] = None

    @property
    def cookbook_name(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"CachedCookbook({self.name!r}, {self.version!r})"

    def __str__(self) -> str:
        return f"{self.name} ({self.version})"

    @property
    def metadata(self) -> CookbookMetadata:
        if self._metadata is None:
            self._metadata = self._load_metadata()
        return self._metadata

    def _read_raw_metadata(self) -> dict:
        json_file = self.path / METADATA_JSON
        yaml_file = self.path / METADATA_YAML

        try:
            if json_file.is_file():
                source, data = json_file, json.loads(json_file.read_text(encoding="utf-8"))
            elif yaml_file.is_file():
                source, data = yaml_file, yaml.safe_load(yaml_file.read_text(encoding="utf-8")) or {}
            else:
                raise ValidationError({self.name: [f"no {METADATA_JSON} or {METADATA_YAML} in {self.path}"]})
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ValidationError({self.name: [f"unreadable metadata: {e}"]}) from e

        if not isinstance(data, dict):
            raise ValidationError({self.name: [f"{source.name} is not a mapping"]})
        return data

    def _load_metadata(self) -> CookbookMetadata:
        data = self._read_raw_metadata()
        data.setdefault("name", self.name)
        data.setdefault("version", self.version)
        try:
            return CookbookMetadata.model_validate(data)
        except PydanticValidationError as e:
            fields = ", ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError({self.name: [f"invalid metadata ({fields})"]}) from e

    def compile_metadata(self) -> Optional[Path]:
        """
        Write metadata.json from metadata.yaml when it is missing.

        Returns:
            Path of the written file, or None when metadata.json already
            existed. The caller owns the returned file and must remove it.
        """
        json_file = self.path / METADATA_JSON
        if json_file.exists():
            return None

        metadata = self._load_metadata()
        # Tracked before writing so a partial file is still released
        self.compiled_metadata = json_file
        json_file.write_text(
            json.dumps(metadata.model_dump(exclude_none=True), indent=2),
            encoding="utf-8"
        )
        logger.debug(f"Compiled metadata for {self.name} to {json_file}")
        return json_file

    def release_compiled_metadata(self):
        """Remove the compiled metadata file, if any"""
        if self.compiled_metadata is not None:
            self.compiled_metadata.unlink(missing_ok=True)
            self.compiled_metadata = None

    def reload(self):
        """Drop cached metadata and version so they are re-read from disk"""
        self._metadata = None
        self._cookbook_version = None

    def files(self) -> List[str]:
        """Paths of the cookbook's files relative to its root, chefignore applied"""
        chefignore = Chefignore(self.path)
        files = []
        for file_path in sorted(self.path.rglob("*")):
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(self.path).as_posix()
            if chefignore.ignored(relative):
                continue
            files.append(relative)
        return files

    @property
    def cookbook_version(self) -> CookbookVersion:
        if self._cookbook_version is None:
            manifest = []
            for relative in self.files():
                digest = hashlib.md5((self.path / relative).read_bytes()).hexdigest()
                manifest.append(CookbookFile(name=relative, path=relative, checksum=digest))
            self._cookbook_version = CookbookVersion(self.metadata, self.path, manifest)
        return self._cookbook_version
