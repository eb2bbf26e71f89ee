# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cookbook Uploader

Single responsibility: Validate, then upload, a Berksfile's cookbooks to
the store in dependency order
"""

import logging
from typing import List, Mapping, Optional, Union

from cookbook_uploader.core.config import get_config
from cookbook_uploader.core.errors import (
    CookbookFrozenError,
    FrozenPackageError,
    StoreError,
    UploadError,
)
from cookbook_uploader.models.cookbook_models import (
    SkipReason,
    UploadOptions,
    UploadOutcome,
    UploadStatus,
)

from .berksfile import Berksfile
from .cookbook import CachedCookbook
from .reporter import LoggingReporter, Reporter
from .resolver import DependencyResolver
from .store_client import CookbookStore, StoreSession
from .transactions import UploadLog
from .validator import Validator

logger = logging.getLogger(__name__)


class Uploader:
    """Uploads cookbooks one at a time behind a validation barrier"""

    def __init__(
        self,
        berksfile: Berksfile,
        *names: str,
        options: Optional[Union[UploadOptions, Mapping]] = None,
        store: Optional[CookbookStore] = None,
        validator: Optional[Validator] = None,
        reporter: Optional[Reporter] = None,
        upload_log: Optional[UploadLog] = None
    ):
        """
        Initialize uploader.

        Args:
            berksfile: Berksfile whose lockfile supplies the cookbooks
            *names: Cookbooks to upload; all declared cookbooks and their
                dependencies when empty. Given names are uploaded as is,
                without adding their dependencies.
            options: UploadOptions or a flat mapping of option keys
            store: Store client (defaults from config)
            validator: Validator (defaults from config)
            reporter: Outcome observer (defaults to logging)
            upload_log: Optional JSONL outcome log
        """
        if isinstance(options, UploadOptions):
            self.options = options
        else:
            self.options = UploadOptions.from_mapping(options)

        self.berksfile = berksfile
        self.lockfile = berksfile.lockfile
        self.names = list(dict.fromkeys(names))
        self.resolver = DependencyResolver(self.lockfile.graph)

        if store is None or validator is None:
            config = get_config()
            store = store or CookbookStore.from_config(config)
            validator = validator or Validator(gpgcheck=config.gpgcheck, keyring_dir=config.keyring_dir)

        self.store = store
        self.validator = validator
        self.reporter = reporter or LoggingReporter(store.url)
        self.upload_log = upload_log
        self.outcomes: List[UploadOutcome] = []

    def run(self) -> List[CachedCookbook]:
        """
        Upload the cookbooks.

        Returns:
            Cookbooks processed (uploaded or skipped), in upload order

        Raises:
            UnknownPackageError: If a cookbook is not in the lockfile
            DependencyCycleError: If the declared dependencies form a cycle
            ValidationError: If any cookbook fails validation (nothing is uploaded)
            FrozenPackageError: If a cookbook is frozen and halt_on_frozen is set
            UploadError: On any other store failure
        """
        logger.info("Uploading cookbooks")

        if not self.names:
            logger.debug("  No names given, using all cookbooks")
            cookbooks = self.filtered_cookbooks()
        else:
            logger.debug(f"  Names given ({', '.join(self.names)})")
            cookbooks = [self.lockfile.retrieve(name) for name in self.names]

        # All validations happen first to prevent partially uploaded batches
        if self.options.run_validation:
            self.validator.validate_files(cookbooks)
        else:
            logger.debug("  Skipping validation")

        return self._upload(cookbooks)

    def filtered_cookbooks(self) -> List[CachedCookbook]:
        """
        Declared dependencies (after group filters) and everything they
        depend on, dependencies first.
        """
        roots = [dependency.name for dependency in self.berksfile.dependencies]
        order = self.resolver.resolve(roots)
        return [self.lockfile.retrieve(name) for name in order]

    def _upload(self, cookbooks: List[CachedCookbook]) -> List[CachedCookbook]:
        logger.info("Starting upload")
        self.outcomes = []
        processed = []

        with self.store.connect() as session:
            for cookbook in cookbooks:
                self._upload_cookbook(session, cookbook)
                processed.append(cookbook)

        return processed

    def _upload_cookbook(self, session: StoreSession, cookbook: CachedCookbook):
        try:
            if cookbook.compile_metadata():
                cookbook.reload()
            cookbook_version = cookbook.cookbook_version
            logger.debug(f"  Uploading {cookbook.cookbook_name}")

            if self.options.freeze:
                cookbook_version.freeze_version()

            # Older store protocol versions reject null maintainer fields
            metadata = cookbook_version.metadata
            if metadata.maintainer is None:
                metadata.maintainer = ""
            if metadata.maintainer_email is None:
                metadata.maintainer_email = ""

            try:
                session.upload(cookbook_version, force=self.options.force, concurrency=1)
            except CookbookFrozenError as e:
                cookbook.frozen = True
                if self.options.halt_on_frozen:
                    self._record(cookbook, UploadStatus.FAILED, error=str(e))
                    raise FrozenPackageError(cookbook.name, cookbook.version) from e
                self._record(cookbook, UploadStatus.SKIPPED, reason=SkipReason.ALREADY_FROZEN)
                self._notify("skipped", cookbook)
                return
            except StoreError as e:
                self._record(cookbook, UploadStatus.FAILED, error=str(e))
                raise UploadError(cookbook.name, e) from e

            cookbook.frozen = cookbook_version.frozen
            self._record(cookbook, UploadStatus.UPLOADED)
            self._notify("uploaded", cookbook)
        finally:
            cookbook.release_compiled_metadata()

    def _record(
        self,
        cookbook: CachedCookbook,
        status: UploadStatus,
        reason: Optional[SkipReason] = None,
        error: Optional[str] = None
    ):
        outcome = UploadOutcome(
            name=cookbook.name,
            version=cookbook.version,
            status=status,
            reason=reason,
            error=error
        )
        self.outcomes.append(outcome)
        if self.upload_log is not None:
            self.upload_log.log(outcome)

    def _notify(self, event: str, cookbook: CachedCookbook):
        # Reporter failures never abort an upload
        try:
            getattr(self.reporter, event)(cookbook)
        except Exception as e:
            logger.warning(f"Reporter failed on '{event}' for {cookbook.name}: {e}")
