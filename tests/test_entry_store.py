import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import uuid
from datetime import datetime, timedelta

import pytest

from diary_manager.core.errors import StorageIOError, ValidationError
from diary_manager.core.models import EntryRecord
from diary_manager.store.entry_store import EntryStore

T0 = datetime(2024, 5, 1, 9, 30, 15)


def files_in(path):
    return sorted(p.name for p in path.iterdir())


def test_initialize_creates_directory_and_is_idempotent(tmp_path):
    store = EntryStore(tmp_path / "entries")
    store.initialize()
    store.initialize()
    assert (tmp_path / "entries").is_dir()


def test_initialize_failure_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(StorageIOError):
        EntryStore(blocker / "entries").initialize()


def test_save_writes_named_file_and_sets_file_id(tmp_path):
    store = EntryStore(tmp_path)
    rec = EntryRecord("Trip", "Day 1", T0)

    file_id = store.save(rec)

    assert file_id == "20240501_093015_Trip.txt"
    assert rec.file_id == file_id
    assert (tmp_path / file_id).read_text(encoding="utf-8") == "Trip\n2024-05-01T09:30:15\nDay 1"


def test_save_leaves_no_temp_files(tmp_path):
    EntryStore(tmp_path).save(EntryRecord("Trip", "Day 1", T0))
    assert files_in(tmp_path) == ["20240501_093015_Trip.txt"]


def test_save_rejects_empty_or_multiline_title(tmp_path):
    store = EntryStore(tmp_path)
    with pytest.raises(ValidationError):
        store.save(EntryRecord("", "x", T0))
    with pytest.raises(ValidationError):
        store.save(EntryRecord("two\nlines", "x", T0))
    assert files_in(tmp_path) == []


def test_save_into_missing_directory_raises_storage_error(tmp_path):
    store = EntryStore(tmp_path / "missing")
    rec = EntryRecord("Trip", "Day 1", T0)
    with pytest.raises(StorageIOError):
        store.save(rec)
    assert rec.file_id is None


def test_same_second_same_title_overwrites(tmp_path):
    store = EntryStore(tmp_path)
    store.save(EntryRecord("Trip", "first", T0))
    store.save(EntryRecord("Trip", "second", T0.replace(microsecond=500)))

    entries = store.list_all()
    assert len(entries) == 1
    assert entries[0].content == "second"


def test_list_all_empty_directory(tmp_path):
    assert EntryStore(tmp_path).list_all() == []


def test_list_all_missing_directory(tmp_path):
    assert EntryStore(tmp_path / "nope").list_all() == []


def test_list_all_newest_first(tmp_path):
    store = EntryStore(tmp_path)
    for i, title in enumerate(["b", "c", "a"]):
        store.save(EntryRecord(title, "", T0 + timedelta(days=[2, 0, 1][i])))

    entries = store.list_all()

    assert [e.title for e in entries] == ["b", "a", "c"]
    assert all(x.timestamp >= y.timestamp for x, y in zip(entries, entries[1:]))
    assert all(e.file_id for e in entries)


def test_list_all_skips_corrupt_files(tmp_path):
    store = EntryStore(tmp_path)
    store.save(EntryRecord("one", "1", T0))
    store.save(EntryRecord("two", "2", T0 + timedelta(hours=1)))
    (tmp_path / "short.txt").write_text("only a title", encoding="utf-8")
    (tmp_path / "two_lines.txt").write_text("title\n2024-05-01T09:30:15", encoding="utf-8")
    (tmp_path / "bad_ts.txt").write_text("title\nnot a date\nbody", encoding="utf-8")
    (tmp_path / "binary.txt").write_bytes(b"\xff\xfe\x00garbage")
    (tmp_path / "odd.txt").write_text("Odd\n2024-05-02T10:00:00+02:00\nbody\n", encoding="utf-8")

    entries = store.list_all()

    assert [e.title for e in entries] == ["two", "one"]


def test_list_all_ignores_leftover_temp_files(tmp_path):
    store = EntryStore(tmp_path)
    (tmp_path / f".20240501_093015_Trip.txt.tmp-{uuid.uuid4().hex}").write_text(
        "Trip\n2024-05-01T09:30:15\nhalf", encoding="utf-8"
    )
    assert store.list_all() == []


def test_list_all_reads_other_dotfiles(tmp_path):
    (tmp_path / ".early.txt").write_text("Early\n2024-05-01T06:00:00\nsunrise", encoding="utf-8")
    (tmp_path / ".notes.tmp-draft").write_text("Draft\n2024-05-01T07:00:00\n", encoding="utf-8")

    entries = EntryStore(tmp_path).list_all()

    assert [e.title for e in entries] == ["Draft", "Early"]


def test_list_all_reads_nested_files(tmp_path):
    (tmp_path / "2023").mkdir()
    (tmp_path / "2023" / "old.txt").write_text("Old\n2023-01-01T00:00:00\nbody", encoding="utf-8")

    entries = EntryStore(tmp_path).list_all()

    assert [e.title for e in entries] == ["Old"]
    assert entries[0].file_id == "2023/old.txt"


def test_search_matches_title_or_content_case_insensitively(tmp_path):
    store = EntryStore(tmp_path)
    store.save(EntryRecord("Beach Trip", "sand", T0))
    store.save(EntryRecord("Work", "long MEETING about the trip", T0 + timedelta(hours=1)))
    store.save(EntryRecord("Groceries", "eggs", T0 + timedelta(hours=2)))

    assert [e.title for e in store.search("TRIP")] == ["Work", "Beach Trip"]
    assert [e.title for e in store.search("meeting")] == ["Work"]
    assert store.search("nothing like this") == []


def test_search_is_subset_of_list_all(tmp_path):
    store = EntryStore(tmp_path)
    for i in range(5):
        store.save(EntryRecord(f"entry {i}", "even" if i % 2 == 0 else "odd", T0 + timedelta(minutes=i)))

    everything = store.list_all()
    found = store.search("even")

    assert all(e in everything for e in found)
    assert len(found) == 3


def test_update_replaces_file_and_keeps_timestamp(tmp_path):
    store = EntryStore(tmp_path)
    original = EntryRecord("Trip", "Day 1", T0)
    store.save(original)

    updated = original.replaced_with(title="Trip to the coast", content="Day 1 edited")
    store.update(original, updated)

    assert files_in(tmp_path) == ["20240501_093015_Trip_to_the_coast.txt"]
    [loaded] = store.list_all()
    assert loaded == updated
    assert loaded.timestamp == T0


def test_delete_by_file_id(tmp_path):
    store = EntryStore(tmp_path)
    keep = EntryRecord("keep", "", T0)
    drop = EntryRecord("drop", "", T0)
    store.save(keep)
    store.save(drop)

    store.delete(drop)

    assert files_in(tmp_path) == [keep.file_id]


def test_delete_falls_back_to_timestamp_and_title(tmp_path):
    store = EntryStore(tmp_path)
    store.save(EntryRecord("Trip", "Day 1", T0))

    store.delete(EntryRecord("Trip", "content does not matter", T0))

    assert files_in(tmp_path) == []


def test_delete_with_stale_file_id_uses_scan(tmp_path):
    store = EntryStore(tmp_path)
    store.save(EntryRecord("Trip", "Day 1", T0))

    store.delete(EntryRecord("Trip", "Day 1", T0, file_id="renamed-elsewhere.txt"))

    assert files_in(tmp_path) == []


def test_delete_without_match_is_a_no_op(tmp_path):
    store = EntryStore(tmp_path)
    store.save(EntryRecord("Trip", "Day 1", T0))
    (tmp_path / "junk.txt").write_text("junk", encoding="utf-8")
    before = files_in(tmp_path)

    store.delete(EntryRecord("Trip", "Day 1", T0 + timedelta(seconds=1)))
    store.delete(EntryRecord("Other", "Day 1", T0))

    assert files_in(tmp_path) == before


def test_trip_scenario(tmp_path):
    store = EntryStore(tmp_path)

    rec = EntryRecord("Trip", "Day 1", T0)
    store.save(rec)
    assert files_in(tmp_path) == ["20240501_093015_Trip.txt"]
    assert store.list_all() == [rec]

    edited = rec.replaced_with(title="Trip", content="Day 1 edited")
    store.update(rec, edited)
    assert files_in(tmp_path) == ["20240501_093015_Trip.txt"]
    [loaded] = store.list_all()
    assert (loaded.title, loaded.content, loaded.timestamp) == ("Trip", "Day 1 edited", T0)

    store.delete(edited)
    assert files_in(tmp_path) == []
