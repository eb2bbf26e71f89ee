# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Lockfile

Single responsibility: Load the locked dependency graph and map cookbook
names to resolved cookbooks on disk
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from cookbook_uploader.core.errors import ConfigurationError, UnknownPackageError
from cookbook_uploader.models.cookbook_models import GraphItem, LockfileDependency

from .cookbook import CachedCookbook

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Locked graph of cookbooks (versions are already resolved)"""

    def __init__(self, items: Optional[Dict[str, GraphItem]] = None):
        self.items: Dict[str, GraphItem] = dict(items or {})

    def add(self, item: GraphItem):
        self.items[item.name] = item

    def find(self, name: str) -> GraphItem:
        """
        Look up a cookbook in the graph.

        Raises:
            UnknownPackageError: If the cookbook is not in the graph
        """
        try:
            return self.items[name]
        except KeyError:
            raise UnknownPackageError(name)

    def __len__(self) -> int:
        return len(self.items)


class Lockfile:
    """
    JSON lockfile holding the Berksfile's top-level dependencies and the
    locked graph. Cookbook paths are relative to the lockfile's directory.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        dependencies: Optional[List[LockfileDependency]] = None,
        base_dir: Optional[Path] = None
    ):
        self.graph = graph
        self.dependencies = list(dependencies or [])
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self._cookbooks: Dict[str, CachedCookbook] = {}

    @classmethod
    def from_file(cls, path: Path) -> "Lockfile":
        """
        Load a lockfile from disk.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Lockfile not found: {path}", config_file=str(path))

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid lockfile JSON: {e}", config_file=str(path))

        return cls.from_dict(data, base_dir=path.parent)

    @classmethod
    def from_dict(cls, data: dict, base_dir: Optional[Path] = None) -> "Lockfile":
        graph = DependencyGraph()
        for name, entry in data.get("graph", {}).items():
            graph.add(GraphItem(name=name, **entry))

        dependencies = []
        for dep in data.get("dependencies", []):
            if isinstance(dep, str):
                dep = {"name": dep}
            dependencies.append(LockfileDependency(**dep))

        logger.debug(f"Loaded lockfile with {len(graph)} cookbooks, {len(dependencies)} dependencies")
        return cls(graph, dependencies, base_dir=base_dir)

    def retrieve(self, name: str) -> CachedCookbook:
        """
        Get the resolved cookbook for a name.

        The same instance is returned for repeated calls within one lockfile.

        Raises:
            UnknownPackageError: If the cookbook is not locked
        """
        if name not in self._cookbooks:
            item = self.graph.find(name)
            path = Path(item.path)
            if not path.is_absolute():
                path = self.base_dir / path
            self._cookbooks[name] = CachedCookbook(item.name, item.version, path)
        return self._cookbooks[name]
