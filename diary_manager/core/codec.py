from __future__ import annotations

from datetime import datetime

from diary_manager.core.errors import DecodeError
from diary_manager.core.models import EntryRecord


def encode_entry(record: EntryRecord) -> str:
    """
    Serialize a record as three parts:

        <title>
        <timestamp, ISO-8601>
        <content, any number of lines>

    Content is everything after the second line break, so an empty content
    still produces a third (empty) line.
    """
    return f"{record.title}\n{record.timestamp.isoformat()}\n{record.content}"


def decode_entry(text: str, *, file_id: str | None = None) -> EntryRecord:
    parts = text.split("\n", 2)
    if len(parts) < 3:
        raise DecodeError(f"expected at least 3 lines, got {len(parts)}")

    title, raw_ts, content = parts
    title = title.rstrip("\r")
    try:
        timestamp = datetime.fromisoformat(raw_ts.strip())
    except ValueError as exc:
        raise DecodeError(f"bad timestamp: {raw_ts!r}") from exc
    if timestamp.tzinfo is not None:
        # entries carry naive local time
        raise DecodeError(f"timestamp has a UTC offset: {raw_ts!r}")

    return EntryRecord(title=title, content=content, timestamp=timestamp, file_id=file_id)
