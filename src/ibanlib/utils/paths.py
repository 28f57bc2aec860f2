from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "ibanlib"

CONFIG_ENV = "IBANLIB_CONFIG"
LOG_DIR_ENV = "IBANLIB_LOG_DIR"
DEFAULT_CONFIG_NAME = "ibanlib.yaml"


def _package_root() -> Path:
    # src/ibanlib/utils/paths.py -> src/ibanlib
    return Path(__file__).resolve().parents[1]


def packaged_registry_path() -> Path:
    return _package_root() / "data" / "iban_registry.yaml"


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    return Path.cwd() / DEFAULT_CONFIG_NAME


def default_log_dir() -> Path:
    env = os.environ.get(LOG_DIR_ENV)
    if env:
        return Path(env)
    return Path.home() / f".{APP_NAME}" / "logs"
