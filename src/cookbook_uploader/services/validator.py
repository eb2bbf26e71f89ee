# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cookbook Validator

Single responsibility: Check every cookbook of a batch locally before any
of them is uploaded
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from cookbook_uploader.core.errors import ValidationError
from cookbook_uploader.signing import gpg

from .cookbook import CachedCookbook, Chefignore, METADATA_JSON, METADATA_YAML

logger = logging.getLogger(__name__)

# Characters the store cannot hold in a file name
INVALID_FILENAME_CHARS = re.compile(r'[\\:*?"<>|]')


class Validator:
    """Validates cookbook source trees (all-or-nothing)"""

    def __init__(self, gpgcheck: bool = False, keyring_dir: Optional[str] = None):
        """
        Initialize validator.

        Args:
            gpgcheck: Require a valid detached signature over the metadata file
            keyring_dir: GPG keyring used for signature checks
        """
        self.gpgcheck = gpgcheck
        self.keyring_dir = keyring_dir

    def validate_files(self, cookbooks: Iterable[CachedCookbook]):
        """
        Validate every cookbook and report all problems together.

        Raises:
            ValidationError: If any cookbook has a problem
        """
        problems: Dict[str, List[str]] = {}
        for cookbook in cookbooks:
            issues = self.check(cookbook)
            if issues:
                problems[cookbook.name] = issues

        if problems:
            logger.error(f"Validation failed for {len(problems)} cookbook(s): {', '.join(problems)}")
            raise ValidationError(problems)

    def check(self, cookbook: CachedCookbook) -> List[str]:
        """Problems found in one cookbook (empty when valid)"""
        path = cookbook.path
        if not path.is_dir():
            return [f"cookbook path does not exist: {path}"]

        issues = []
        metadata_file = self._metadata_file(path)
        if metadata_file is None:
            issues.append(f"missing {METADATA_JSON} or {METADATA_YAML}")
        else:
            issues.extend(self._check_metadata(cookbook))

        invalid = self.invalid_files(path)
        if invalid:
            issues.append(f"invalid file names: {', '.join(invalid)}")

        if self.gpgcheck and metadata_file is not None:
            issues.extend(self._check_signature(metadata_file))

        return issues

    def invalid_files(self, path: Path) -> List[str]:
        """
        File names (relative to the cookbook's parent directory) containing
        characters the store rejects. Entries matched by chefignore are skipped.
        """
        chefignore = Chefignore(path)
        invalid = []
        for file_path in sorted(path.rglob("*")):
            relative = file_path.relative_to(path).as_posix()
            if chefignore.ignored(relative):
                continue
            if INVALID_FILENAME_CHARS.search(file_path.name):
                invalid.append(f"{path.name}/{relative}")
        return invalid

    def _metadata_file(self, path: Path) -> Optional[Path]:
        for name in (METADATA_JSON, METADATA_YAML):
            candidate = path / name
            if candidate.is_file():
                return candidate
        return None

    def _check_metadata(self, cookbook: CachedCookbook) -> List[str]:
        """Metadata must parse and name the cookbook version that was locked"""
        try:
            metadata = cookbook.metadata
        except ValidationError as e:
            return e.problems.get(cookbook.name, [e.message])

        issues = []
        if metadata.name != cookbook.name:
            issues.append(f"metadata name {metadata.name!r} does not match locked name {cookbook.name!r}")
        if metadata.version != cookbook.version:
            issues.append(
                f"metadata version {metadata.version} does not match locked version {cookbook.version}"
            )
        return issues

    def _check_signature(self, metadata_file: Path) -> List[str]:
        signature = gpg.signature_path_for(metadata_file)
        if not signature.is_file():
            return [f"missing signature {signature.name}"]

        is_valid, error = gpg.verify_signature(
            str(metadata_file),
            str(signature),
            keyring_dir=self.keyring_dir
        )
        if not is_valid:
            return [f"bad signature on {metadata_file.name}: {error}"]
        return []
