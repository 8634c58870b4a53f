from __future__ import annotations

import re
from datetime import datetime

from diary_manager.settings import ENTRY_SUFFIX, FILE_DATE_FORMAT

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9]")


def sanitize_title(title: str) -> str:
    """Replace every character outside [A-Za-z0-9] with an underscore."""
    return _UNSAFE_RE.sub("_", title)


def entry_filename(timestamp: datetime, title: str) -> str:
    return f"{timestamp.strftime(FILE_DATE_FORMAT)}_{sanitize_title(title)}{ENTRY_SUFFIX}"
