from __future__ import annotations

import os
import re
import uuid
from pathlib import Path

TMP_PREFIX = "."
_TMP_NAME = re.compile(r"^\..+\.tmp-[0-9a-f]{32}$")


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """
    Atomic-ish file write:
      - write to a hidden temp file in the same directory
      - fsync
      - replace() into the final path

    Text is written verbatim (no newline translation) so entry content
    reads back exactly as saved on every platform.
    """
    path = Path(path)
    tmp_path = path.parent / f"{TMP_PREFIX}{path.name}.tmp-{uuid.uuid4().hex}"

    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        tmp_path.unlink(missing_ok=True)


def is_temp_file(name: str) -> bool:
    """True for the hidden files atomic_write_text leaves behind if it is interrupted."""
    return _TMP_NAME.match(name) is not None


def read_text_verbatim(path: Path, *, encoding: str = "utf-8") -> str:
    with open(path, "r", encoding=encoding, newline="") as f:
        return f.read()
