import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import datetime

import pytest

from diary_manager.core.codec import decode_entry, encode_entry
from diary_manager.core.errors import DecodeError
from diary_manager.core.models import EntryRecord

T0 = datetime(2024, 5, 1, 9, 30, 15)


def test_layout():
    rec = EntryRecord("Trip", "Day 1", T0)
    assert encode_entry(rec) == "Trip\n2024-05-01T09:30:15\nDay 1"


@pytest.mark.parametrize(
    "content",
    [
        "",
        "single line",
        "line 1\nline 2",
        "para 1\n\n\npara 2",
        "ends with newline\n",
        "\nstarts with newline",
        "<p>markup</p>\n<b>bold</b>",
    ],
)
def test_content_survives_round_trip(content):
    rec = EntryRecord("Title", content, T0)
    assert decode_entry(encode_entry(rec)) == rec


def test_microseconds_survive_round_trip():
    rec = EntryRecord("T", "c", datetime(2024, 5, 1, 9, 30, 15, 42))
    assert decode_entry(encode_entry(rec)).timestamp == rec.timestamp


def test_file_id_is_attached_but_not_compared():
    rec = EntryRecord("T", "c", T0)
    loaded = decode_entry(encode_entry(rec), file_id="x.txt")
    assert loaded.file_id == "x.txt"
    assert loaded == rec


def test_crlf_header_lines():
    loaded = decode_entry("Title\r\n2024-05-01T09:30:15\r\nbody")
    assert loaded.title == "Title"
    assert loaded.timestamp == T0
    assert loaded.content == "body"


@pytest.mark.parametrize("text", ["", "only title", "title\n2024-05-01T09:30:15"])
def test_too_few_lines(text):
    with pytest.raises(DecodeError):
        decode_entry(text)


def test_bad_timestamp():
    with pytest.raises(DecodeError):
        decode_entry("title\nyesterday\nbody")


def test_label():
    assert EntryRecord("Trip", "", T0).label == "Trip (2024-05-01)"


def test_replaced_with_keeps_identity():
    rec = EntryRecord("Trip", "Day 1", T0, file_id="20240501_093015_Trip.txt")
    new = rec.replaced_with(title="Trip!", content="Day 1 edited")
    assert new.timestamp == T0
    assert new.file_id == rec.file_id
    assert (new.title, new.content) == ("Trip!", "Day 1 edited")
    assert rec.content == "Day 1"


@pytest.mark.parametrize("raw_ts", ["2024-05-02T10:00:00+02:00", "2024-05-02T10:00:00+00:00"])
def test_offset_timestamp_is_rejected(raw_ts):
    with pytest.raises(DecodeError):
        decode_entry(f"Odd\n{raw_ts}\nbody\n")
