# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Uploader Configuration - Single source of truth.
YAML is king. Env vars ONLY for secrets.

- ALL configuration in plain text (YAML)
- NO hidden state - everything inspectable via `cat`, `grep`
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cookbook_uploader.core.errors import ConfigurationError


DEFAULT_CONFIG_PATH = "~/.cookbook-uploader/config.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable uploader configuration.
    All values from YAML. No hidden state.
    """

    # -- Store --
    store_url: str = "https://localhost/organizations/default"
    client_name: str = "uploader"
    ssl_verify: bool = True
    http_timeout: float = 30.0

    # -- Upload defaults --
    force: bool = False
    freeze: bool = True
    halt_on_frozen: bool = False
    validate: bool = True

    # -- Validation --
    gpgcheck: bool = False
    keyring_dir: Optional[str] = None

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: Optional[str] = None

    # -- Upload log --
    upload_log_path: Optional[str] = None

    def upload_defaults(self) -> dict:
        """Upload option defaults as a flat mapping."""
        return {
            "force": self.force,
            "freeze": self.freeze,
            "halt_on_frozen": self.halt_on_frozen,
            "validate": self.validate,
        }

    def get_store_token(self) -> Optional[str]:
        """Get store API token from environment"""
        return get_store_token()


# =============================================================================
# SECRETS - The ONLY thing from environment variables
# =============================================================================

def get_store_token() -> Optional[str]:
    """Store credentials cannot be in version control."""
    return os.getenv("COOKBOOK_STORE_TOKEN")


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.
    """
    config_path = Path(path).expanduser()
    if not config_path.exists():
        return Config()

    try:
        with open(config_path) as f:
            y = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config: {e}", config_file=str(config_path))

    if not isinstance(y, dict):
        raise ConfigurationError("Config root must be a mapping", config_file=str(config_path))

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()
    return Config(
        # Store
        store_url=get(y, "store", "url", default=defaults.store_url),
        client_name=get(y, "store", "client_name", default=defaults.client_name),
        ssl_verify=get(y, "store", "ssl_verify", default=defaults.ssl_verify),
        http_timeout=float(get(y, "store", "timeout", default=defaults.http_timeout)),

        # Upload defaults
        force=get(y, "upload", "force", default=defaults.force),
        freeze=get(y, "upload", "freeze", default=defaults.freeze),
        halt_on_frozen=get(y, "upload", "halt_on_frozen", default=defaults.halt_on_frozen),
        validate=get(y, "upload", "validate", default=defaults.validate),

        # Validation
        gpgcheck=get(y, "validation", "gpgcheck", default=defaults.gpgcheck),
        keyring_dir=get(y, "validation", "keyring", default=defaults.keyring_dir),

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level", default=defaults.log_level),
        log_format=get(y, "logging", "format", default=defaults.log_format),
        log_file=get(y, "logging", "file", default=defaults.log_file),

        upload_log_path=get(y, "upload_log", "path", default=defaults.upload_log_path),
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("COOKBOOK_UPLOADER_CONFIG", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
