# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures and Utilities

Provides pytest fixtures for on-disk cookbooks and lockfiles, and an
in-memory cookbook store that records every upload.
"""

import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cookbook_uploader.core.errors import CookbookFrozenError
from cookbook_uploader.services.berksfile import Berksfile
from cookbook_uploader.services.lockfile import Lockfile


# ============================================================================
# On-disk cookbooks
# ============================================================================

def write_cookbook(
    root: Path,
    name: str,
    version: str = "1.0.0",
    metadata_format: str = "json",
    files: Optional[Dict[str, str]] = None,
    **metadata
) -> Path:
    """Create a cookbook directory with metadata and a default recipe"""
    path = root / "cookbooks" / name
    path.mkdir(parents=True, exist_ok=True)

    data = {"name": name, "version": version, **metadata}
    if metadata_format == "json":
        (path / "metadata.json").write_text(json.dumps(data))
    elif metadata_format == "yaml":
        (path / "metadata.yaml").write_text(yaml.safe_dump(data))

    for relative, content in (files or {"recipes/default.rb": f"# {name}\n"}).items():
        file_path = path / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
    return path


@pytest.fixture
def build_berksfile(tmp_path):
    """
    Factory building cookbooks, a lockfile and a Berksfile from a graph.

    Usage: build_berksfile({"app": ["db"], "db": []}, roots=["app"])
    """
    def _build(
        graph: Dict[str, List[str]],
        roots: Optional[List[str]] = None,
        metadata_format: str = "json",
        groups: Optional[Dict[str, List[str]]] = None,
        **filters
    ) -> Berksfile:
        entries = {}
        for name, deps in graph.items():
            write_cookbook(tmp_path, name, metadata_format=metadata_format)
            entries[name] = {
                "version": "1.0.0",
                "path": f"cookbooks/{name}",
                "dependencies": {dep: ">= 0.0.0" for dep in deps},
            }

        declared = roots if roots is not None else list(graph)
        data = {
            "dependencies": [
                {"name": name, "groups": (groups or {}).get(name, ["default"])}
                for name in declared
            ],
            "graph": entries,
        }
        lockfile_path = tmp_path / "Berksfile.lock.json"
        lockfile_path.write_text(json.dumps(data))
        return Berksfile(Lockfile.from_file(lockfile_path), **filters)

    return _build


# ============================================================================
# In-memory store
# ============================================================================

class FakeSession:
    """Records uploads; raises configured errors per cookbook name"""

    def __init__(self, store: "FakeStore"):
        self.store = store

    def upload(self, cookbook_version, force=False, concurrency=1):
        store = self.store
        store.in_flight += 1
        store.max_in_flight = max(store.max_in_flight, store.in_flight)
        try:
            name = cookbook_version.name
            store.uploads.append({
                "name": name,
                "version": cookbook_version.version,
                "force": force,
                "concurrency": concurrency,
                "frozen": cookbook_version.frozen,
                "maintainer": cookbook_version.metadata.maintainer,
                "maintainer_email": cookbook_version.metadata.maintainer_email,
                "metadata_json_exists": (cookbook_version.root / "metadata.json").exists(),
            })
            if name in store.frozen:
                raise CookbookFrozenError(name, cookbook_version.version)
            if name in store.errors:
                raise store.errors[name]
            return {"uri": f"{store.url}/cookbooks/{name}/{cookbook_version.version}"}
        finally:
            store.in_flight -= 1


class FakeStore:
    """Stand-in for CookbookStore"""

    url = "https://store.example.com/organizations/test"

    def __init__(self, frozen=(), errors=None):
        self.frozen = set(frozen)
        self.errors = dict(errors or {})
        self.uploads: List[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.connections = 0
        self.open_sessions = 0

    @contextmanager
    def connect(self):
        self.connections += 1
        self.open_sessions += 1
        try:
            yield FakeSession(self)
        finally:
            self.open_sessions -= 1

    @property
    def uploaded_names(self) -> List[str]:
        return [upload["name"] for upload in self.uploads]


@pytest.fixture
def fake_store():
    return FakeStore()
