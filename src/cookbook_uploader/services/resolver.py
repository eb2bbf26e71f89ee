# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Dependency Resolver

Single responsibility: Order the dependency closure of a set of cookbooks
so every dependency precedes its dependents, with cycle detection
"""

import logging
from typing import Iterable, List, Set

from cookbook_uploader.core.errors import DependencyCycleError

from .lockfile import DependencyGraph

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Computes upload order over an already-resolved dependency graph"""

    def __init__(self, graph: DependencyGraph):
        """
        Initialize dependency resolver.

        Args:
            graph: Locked dependency graph
        """
        self.graph = graph

    def resolve(self, roots: Iterable[str]) -> List[str]:
        """
        Order the transitive closure of `roots`, dependencies first.

        Roots are expanded in the order given and each cookbook's
        dependencies in the order the graph lists them, so the result is
        deterministic. Every reachable cookbook appears exactly once.

        Args:
            roots: Requested cookbook names

        Returns:
            Cookbook names in upload order

        Raises:
            UnknownPackageError: If a root or dependency is not in the graph
            DependencyCycleError: If a cookbook depends on itself, directly or not
        """
        order: List[str] = []
        seen: Set[str] = set()

        for root in roots:
            self._visit(root, order, seen, [])

        logger.debug(f"Resolved upload order: {', '.join(order)}")
        return order

    def _visit(self, name: str, order: List[str], seen: Set[str], path: List[str]):
        if name in path:
            cycle = path[path.index(name):] + [name]
            raise DependencyCycleError(cycle)
        if name in seen:
            return

        item = self.graph.find(name)
        path.append(name)
        logger.debug(f"  Looking up dependencies for {name}")
        for dependency in item.dependencies:
            self._visit(dependency, order, seen, path)
        path.pop()

        # Recorded only after every dependency is recorded (post-order)
        seen.add(name)
        order.append(name)
