"""Constants file."""

import os
import sys
from pathlib import Path

APP_NAME = "MTG Printing Sync"


def _default_base_dir() -> Path:
    """Return the writable base directory for config and logging."""
    override = os.getenv("MTG_PRINTING_DATA_DIR")
    if override:
        return Path(override).expanduser()
    if getattr(sys, "frozen", False):
        local_appdata = os.getenv("LOCALAPPDATA")
        if local_appdata:
            return Path(local_appdata) / APP_NAME
        return Path.home() / ".mtg_printing_sync"
    return Path(__file__).resolve().parent.parent


BASE_DATA_DIR = _default_base_dir()
CONFIG_DIR = BASE_DATA_DIR / "config"
LOGS_DIR = BASE_DATA_DIR / "logs"


# Client-local key/value storage shared by every store in the process
LOCAL_STORAGE_FILE = CONFIG_DIR / "local_storage.json"
PRINTING_PREFERENCES_KEY = "mtg_printing_preferences"

__all__ = [
    "APP_NAME",
    "BASE_DATA_DIR",
    "CONFIG_DIR",
    "LOGS_DIR",
    "LOCAL_STORAGE_FILE",
    "PRINTING_PREFERENCES_KEY",
]
