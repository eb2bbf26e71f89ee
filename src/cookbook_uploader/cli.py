# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Command line entry point: cookbook-upload
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from cookbook_uploader.core.config import reload_config
from cookbook_uploader.core.errors import UploaderError
from cookbook_uploader.core.logging import configure_logging
from cookbook_uploader.models.cookbook_models import UploadOptions, UploadStatus
from cookbook_uploader.services import (
    Berksfile,
    CookbookStore,
    LoggingReporter,
    UploadLog,
    Uploader,
    Validator,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cookbook-upload",
        description="Upload locked cookbooks and their dependencies to the cookbook store"
    )
    parser.add_argument(
        "names",
        nargs="*",
        help="Cookbooks to upload (default: all declared cookbooks and their dependencies)"
    )
    parser.add_argument(
        "--lockfile",
        default="Berksfile.lock.json",
        help="Path to the lockfile (default: Berksfile.lock.json)"
    )
    parser.add_argument(
        "--config",
        help="Path to the YAML config file"
    )
    parser.add_argument("--force", action="store_true", default=None,
                        help="Overwrite frozen versions on the store")
    parser.add_argument("--no-freeze", dest="freeze", action="store_false", default=None,
                        help="Do not freeze uploaded versions")
    parser.add_argument("--halt-on-frozen", action="store_true", default=None,
                        help="Fail instead of skipping cookbooks that are already frozen")
    parser.add_argument("--skip-syntax-check", dest="validate", action="store_false", default=None,
                        help="Skip local validation before upload")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--only", action="append", default=[], metavar="GROUP",
                       help="Only upload dependencies in this group (repeatable)")
    group.add_argument("--except", dest="except_groups", action="append", default=[], metavar="GROUP",
                       help="Skip dependencies in this group (repeatable)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.config:
        os.environ["COOKBOOK_UPLOADER_CONFIG"] = args.config

    try:
        config = reload_config()
        logger = configure_logging()

        overrides = {
            key: getattr(args, key)
            for key in ("force", "freeze", "halt_on_frozen", "validate")
            if getattr(args, key) is not None
        }
        options = UploadOptions.from_mapping(config.upload_defaults()).merged(overrides)

        berksfile = Berksfile.from_lockfile(
            Path(args.lockfile), only=args.only, except_groups=args.except_groups
        )
        store = CookbookStore.from_config(config)
        uploader = Uploader(
            berksfile,
            *args.names,
            options=options,
            store=store,
            validator=Validator(gpgcheck=config.gpgcheck, keyring_dir=config.keyring_dir),
            reporter=LoggingReporter(store.url),
            upload_log=UploadLog(Path(config.upload_log_path)) if config.upload_log_path else None
        )
        cookbooks = uploader.run()
    except UploaderError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    skipped = sum(1 for outcome in uploader.outcomes if outcome.status == UploadStatus.SKIPPED)
    logger.info(f"Processed {len(cookbooks)} cookbook(s), {skipped} skipped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
