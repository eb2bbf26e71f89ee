# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Upload reporters: observers notified of each cookbook outcome.
"""

from typing import Protocol

from cookbook_uploader.core.logging import get_service_logger, log_event

from .cookbook import CachedCookbook

logger = get_service_logger("reporter")


class Reporter(Protocol):
    """Receives per-cookbook notifications; return values are ignored"""

    def uploaded(self, cookbook: CachedCookbook) -> None: ...

    def skipped(self, cookbook: CachedCookbook) -> None: ...


class LoggingReporter:
    """Reports outcomes as structured log events"""

    def __init__(self, store_url: str = ""):
        self.store_url = store_url

    def uploaded(self, cookbook: CachedCookbook) -> None:
        log_event(
            logger, f"Uploaded {cookbook.name} ({cookbook.version}) to: '{self.store_url}'",
            cookbook=cookbook.name, version=cookbook.version, status="uploaded"
        )

    def skipped(self, cookbook: CachedCookbook) -> None:
        log_event(
            logger, f"Skipping {cookbook.name} ({cookbook.version}) (frozen)",
            level="WARNING",
            cookbook=cookbook.name, version=cookbook.version, status="skipped"
        )
