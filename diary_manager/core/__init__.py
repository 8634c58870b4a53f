from .codec import decode_entry, encode_entry
from .errors import DecodeError, DiaryError, StorageIOError, ValidationError
from .filenames import entry_filename, sanitize_title
from .models import EntryRecord, SessionMode

__all__ = ["decode_entry",
           "encode_entry",
           "DecodeError",
           "DiaryError",
           "StorageIOError",
           "ValidationError",
           "entry_filename",
           "sanitize_title",
           "EntryRecord",
           "SessionMode"
           ]
