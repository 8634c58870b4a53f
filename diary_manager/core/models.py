from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class SessionMode(str, enum.Enum):
    NEW = "new"
    READING = "reading"
    EDITING = "editing"


@dataclass
class EntryRecord:
    """
    One diary entry.

    `file_id` is the name of the file currently backing the record. It is
    assigned by the store on save/load and is not part of equality: two
    records with the same title, content and timestamp are the same entry.
    """
    title: str
    content: str
    timestamp: datetime
    file_id: str | None = field(default=None, compare=False)

    @property
    def label(self) -> str:
        return f"{self.title} ({self.timestamp.date().isoformat()})"

    def replaced_with(self, *, title: str, content: str) -> "EntryRecord":
        # identity (timestamp + backing file) carries over to the replacement
        return EntryRecord(
            title=title,
            content=content,
            timestamp=self.timestamp,
            file_id=self.file_id,
        )
