# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Services Module - Cookbook Upload Pipeline

Each module does one thing:
- lockfile/berksfile: what to upload
- resolver: in which order
- validator: whether the batch may be uploaded at all
- store_client: how it reaches the store
- uploader: the sequential upload run
"""

from .berksfile import Berksfile
from .cookbook import CachedCookbook, CookbookVersion
from .lockfile import DependencyGraph, Lockfile
from .reporter import LoggingReporter, Reporter
from .resolver import DependencyResolver
from .store_client import CookbookStore, StoreSession
from .transactions import UploadLog
from .uploader import Uploader
from .validator import Validator

__all__ = [
    "Berksfile",
    "CachedCookbook",
    "CookbookVersion",
    "DependencyGraph",
    "Lockfile",
    "LoggingReporter",
    "Reporter",
    "DependencyResolver",
    "CookbookStore",
    "StoreSession",
    "UploadLog",
    "Uploader",
    "Validator",
]
