from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from diary_manager.core.codec import decode_entry, encode_entry
from diary_manager.core.errors import DecodeError, StorageIOError, ValidationError
from diary_manager.core.filenames import entry_filename
from diary_manager.core.models import EntryRecord
from diary_manager.settings import APP_NAME
from diary_manager.store.filesystem import atomic_write_text, is_temp_file, read_text_verbatim

log = logging.getLogger(APP_NAME)


@dataclass(frozen=True)
class EntryStore:
    """
    Flat-file storage for diary entries: one text file per entry.

    Every method is a stateless call against `entries_dir`, so instances can
    be shared freely between the UI thread and pool workers. Nothing here
    locks the directory; concurrent writers from other processes are not
    accounted for.
    """
    entries_dir: Path

    def initialize(self) -> None:
        try:
            self.entries_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log.error("Cannot create entries dir %s: %s", self.entries_dir, exc)
            raise StorageIOError(f"Cannot create storage directory {self.entries_dir}: {exc}") from exc

    def entry_path(self, file_id: str) -> Path:
        return self.entries_dir / file_id

    # ───────────────────────── write ─────────────────────────

    def save(self, record: EntryRecord) -> str:
        """
        Write `record` to `<YYYYMMDD_HHMMSS>_<title>.txt` and set its file_id.

        An existing file with the same derived name is overwritten.
        """
        if not record.title.strip():
            raise ValidationError("Title cannot be empty.")
        if "\n" in record.title or "\r" in record.title:
            raise ValidationError("Title must be a single line.")

        file_id = entry_filename(record.timestamp, record.title)
        path = self.entry_path(file_id)
        try:
            atomic_write_text(path, encode_entry(record))
        except OSError as exc:
            raise StorageIOError(f"Failed to write {path.name}: {exc}") from exc

        record.file_id = file_id
        log.debug("Entry saved: %s", file_id)
        return file_id

    def update(self, original: EntryRecord, updated: EntryRecord) -> str:
        # Not atomic: if save() fails here the original file is already gone.
        self.delete(original)
        return self.save(updated)

    def delete(self, record: EntryRecord) -> None:
        """
        Remove the file backing `record`.

        Looks up `record.file_id` first; when that is missing or stale, scans
        the directory for an entry with the same timestamp and title. Finding
        nothing is not an error.
        """
        if record.file_id:
            path = self.entry_path(record.file_id)
            if path.is_file():
                self._unlink(path)
                return

        for path in self._entry_paths():
            try:
                loaded = self._load(path)
            except DecodeError:
                continue
            if loaded.timestamp == record.timestamp and loaded.title == record.title:
                self._unlink(path)
                return

        log.debug("Delete found nothing to remove: title=%r ts=%s", record.title, record.timestamp)

    # ───────────────────────── read ─────────────────────────

    def list_all(self) -> list[EntryRecord]:
        """All decodable entries, newest first. Corrupt files are skipped."""
        entries: list[EntryRecord] = []
        skipped = 0
        for path in self._entry_paths():
            try:
                entries.append(self._load(path))
            except DecodeError as exc:
                skipped += 1
                log.debug("Skipping unreadable entry file %s: %s", path.name, exc)

        if skipped:
            log.info("list_all: loaded=%d skipped=%d", len(entries), skipped)
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    def search(self, query: str) -> list[EntryRecord]:
        q = query.casefold()
        return [
            e for e in self.list_all()
            if q in e.title.casefold() or q in e.content.casefold()
        ]

    # ───────────────────────── internal ─────────────────────────

    def _entry_paths(self) -> list[Path]:
        try:
            return sorted(
                p for p in self.entries_dir.rglob("*")
                if p.is_file() and not is_temp_file(p.name)
            )
        except OSError as exc:
            log.warning("Cannot scan entries dir %s: %s", self.entries_dir, exc)
            return []

    def _load(self, path: Path) -> EntryRecord:
        try:
            text = read_text_verbatim(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise DecodeError(f"unreadable: {exc}") from exc
        return decode_entry(text, file_id=path.relative_to(self.entries_dir).as_posix())

    def _unlink(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageIOError(f"Failed to delete {path.name}: {exc}") from exc
        log.debug("Entry deleted: %s", path.name)
