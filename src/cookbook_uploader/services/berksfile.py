# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Berksfile

Single responsibility: Expose the declared top-level dependencies, filtered
by group, together with the lockfile they were locked into
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from cookbook_uploader.core.errors import ConfigurationError
from cookbook_uploader.models.cookbook_models import LockfileDependency

from .lockfile import Lockfile

logger = logging.getLogger(__name__)


class Berksfile:
    """Declared dependencies of a cookbook collection"""

    def __init__(
        self,
        lockfile: Lockfile,
        only: Optional[Iterable[str]] = None,
        except_groups: Optional[Iterable[str]] = None
    ):
        """
        Initialize Berksfile.

        Args:
            lockfile: Lockfile holding the declared dependencies and graph
            only: Keep only dependencies in these groups
            except_groups: Drop dependencies belonging to any of these groups
        """
        self.only = set(only or [])
        self.except_groups = set(except_groups or [])
        if self.only and self.except_groups:
            raise ConfigurationError("Cannot combine 'only' and 'except' group filters")
        self.lockfile = lockfile

    @classmethod
    def from_lockfile(cls, path: Path, **filters) -> "Berksfile":
        return cls(Lockfile.from_file(path), **filters)

    @property
    def dependencies(self) -> List[LockfileDependency]:
        """Declared dependencies after group filters, in declaration order"""
        selected = []
        for dep in self.lockfile.dependencies:
            groups = set(dep.groups)
            if self.only and not groups & self.only:
                continue
            if groups & self.except_groups:
                continue
            selected.append(dep)

        if len(selected) != len(self.lockfile.dependencies):
            logger.debug(
                f"Group filters kept {len(selected)} of {len(self.lockfile.dependencies)} dependencies"
            )
        return selected
