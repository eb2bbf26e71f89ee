# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Upload Log

Single responsibility: Record and read back upload outcomes (append-only JSONL)
"""

import json
import logging
from pathlib import Path
from typing import List, Dict, Any

from cookbook_uploader.models.cookbook_models import UploadOutcome

logger = logging.getLogger(__name__)


class UploadLog:
    """Manages outcome logging to an append-only JSONL file"""

    def __init__(self, log_file: Path):
        """
        Initialize upload log.

        Args:
            log_file: Path to uploads.jsonl
        """
        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        if not self.log_file.exists():
            self.log_file.touch()

    def log(self, outcome: UploadOutcome):
        """
        Append outcome to JSONL log file.

        Args:
            outcome: Outcome to log
        """
        log_line = json.dumps(outcome.to_dict())
        with open(self.log_file, "a") as f:
            f.write(log_line + "\n")

    def list_outcomes(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        List recent outcomes from log.

        Args:
            limit: Maximum number of outcomes to return

        Returns:
            List of outcome records (most recent first)
        """
        if not self.log_file.exists():
            return []

        outcomes = []
        with open(self.log_file, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    outcomes.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse upload log line: {e}")

        return list(reversed(outcomes[-limit:]))
