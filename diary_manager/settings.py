from __future__ import annotations
from pathlib import Path

APP_NAME = "diary-manager"
LOG_DIR = Path.home() / f".{APP_NAME}" / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"

DEFAULT_ENTRIES_DIR = Path.home() / f".{APP_NAME}" / "diary_entries"

# Entry filenames: <YYYYMMDD_HHMMSS>_<sanitized title>.txt
FILE_DATE_FORMAT = "%Y%m%d_%H%M%S"
ENTRY_SUFFIX = ".txt"

AUTOSAVE_INTERVAL_MS = 30_000
