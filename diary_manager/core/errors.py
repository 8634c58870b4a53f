from __future__ import annotations


class DiaryError(Exception):
    """Base class for diary-manager failures."""


class ValidationError(DiaryError):
    """An entry was rejected before any I/O happened (e.g. empty title)."""


class StorageIOError(DiaryError):
    """Directory creation, file write, read or delete failed."""


class DecodeError(DiaryError):
    """A file in the storage directory is not a valid entry."""
