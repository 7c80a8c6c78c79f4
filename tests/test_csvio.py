import asyncio

import pytest

from barrelvid.csvio import (
    commit_rows, export_riders_csv, filter_riders, parse_riders_csv,
    tokenize, youtube_thumbnail,
)
from barrelvid.errors import FormatError, StorageError
from barrelvid.model.orm import Event, Rider

HEADER = "Rider Name,Event,Price,Video URL,Thumbnail URL"


def make_events():
    return [
        Event(id=1, name="Spring Classic", date="May 1", thumbnail_url="x"),
        Event(id=2, name="Fall Futurity", date="Oct 3", thumbnail_url="y"),
    ]


def test_valid_row_autofills_youtube_thumbnail():
    text = HEADER + '\n"Jane Doe","Spring Classic",80,"https://youtu.be/abc123",""'
    rows = parse_riders_csv(text, make_events())

    assert len(rows) == 1
    row = rows[0]
    assert row.valid
    assert row.error == ""
    assert row.name == "Jane Doe"
    assert row.event_id == 1
    assert row.price == 80
    assert row.thumbnail_url == "https://img.youtube.com/vi/abc123/hqdefault.jpg"


def test_event_name_matching_is_case_insensitive():
    text = HEADER + '\n"Jane Doe","spring CLASSIC",80,"https://example.com/v.mp4"'
    rows = parse_riders_csv(text, make_events())
    assert rows[0].valid
    assert rows[0].event_id == 1
    assert rows[0].thumbnail_url == ""


def test_unknown_event_is_reported_per_row():
    text = "\n".join([
        HEADER,
        '"Jane Doe","Spring Classic",80,"https://youtu.be/abc123",""',
        '"Bob Ray","Nowhere Open",80,"https://youtu.be/zzz",""',
    ])
    rows = parse_riders_csv(text, make_events())
    assert [r.valid for r in rows] == [True, False]
    assert rows[1].error == "Event not found"
    assert rows[1].event_id is None


def test_first_failing_check_wins():
    text = "\n".join([
        HEADER,
        '"","Nowhere Open",80,"",""',
        '"Bob","Nowhere Open",80,"",""',
        '"Bob","Fall Futurity",80,"",""',
    ])
    rows = parse_riders_csv(text, make_events())
    assert [r.error for r in rows] == [
        "Missing rider name",
        "Event not found",
        "Missing video URL",
    ]


def test_short_line_is_invalid_but_batch_continues():
    text = "\n".join([
        HEADER,
        "just-one-field",
        '"Jane Doe","Spring Classic",80,"https://youtu.be/abc123",""',
    ])
    rows = parse_riders_csv(text, make_events())
    assert rows[0].valid is False
    assert rows[0].error == "Invalid CSV format"
    assert rows[1].valid is True


def test_header_only_is_a_format_error():
    with pytest.raises(FormatError):
        parse_riders_csv(HEADER, make_events())
    with pytest.raises(FormatError):
        parse_riders_csv(HEADER + "\n\n  \n", make_events())


def test_header_must_name_required_columns():
    with pytest.raises(FormatError) as exc:
        parse_riders_csv('Name,Event,Cost\n"a","b",1,"c"', make_events())
    assert "Rider Name" in exc.value.message


def test_header_columns_any_order_and_case():
    text = 'PRICE,event,RIDER NAME\n"Jane","Spring Classic",80,"https://v"'
    rows = parse_riders_csv(text, make_events())
    assert len(rows) == 1


def test_price_falls_back_to_default():
    text = "\n".join([
        HEADER,
        '"A","Spring Classic","cheap","https://v/1"',
        '"B","Spring Classic",0,"https://v/2"',
        '"C","Spring Classic",95.5,"https://v/3"',
    ])
    prices = [r.price for r in parse_riders_csv(text, make_events())]
    assert prices == [80, 80, 95.5]


def test_quoted_fields_keep_commas():
    tokens = tokenize('"Smith, Jr.","Spring Classic",80,"https://v"')
    assert tokens[0] == '"Smith, Jr."'
    assert len(tokens) == 4


def test_windows_line_endings():
    text = HEADER + '\r\n"Jane Doe","Spring Classic",80,"https://youtu.be/abc123",""\r\n'
    rows = parse_riders_csv(text, make_events())
    assert len(rows) == 1
    assert rows[0].valid


def test_youtube_thumbnail_forms():
    assert youtube_thumbnail("https://www.youtube.com/watch?v=XyZ&t=3") == \
        "https://img.youtube.com/vi/XyZ/hqdefault.jpg"
    assert youtube_thumbnail("https://youtu.be/abc?si=1") == \
        "https://img.youtube.com/vi/abc/hqdefault.jpg"
    assert youtube_thumbnail("https://vimeo.com/123") is None
    assert youtube_thumbnail("https://www.youtube.com/channel/foo") is None


class FlakyCatalog:
    def __init__(self, fail_on):
        self.fail_on = fail_on
        self.created = []

    async def create_rider(self, **kw):
        if kw["name"] == self.fail_on:
            raise StorageError("Error creating rider")
        self.created.append(kw)
        return kw


def test_commit_counts_successes_and_failures_without_rollback():
    text = "\n".join([
        HEADER,
        '"A","Spring Classic",80,"https://v/1"',
        '"B","Spring Classic",80,"https://v/2"',
        '"C","Ghost Event",80,"https://v/3"',
        '"D","Fall Futurity",70,"https://v/4"',
    ])
    rows = parse_riders_csv(text, make_events())
    catalog = FlakyCatalog(fail_on="B")

    result = asyncio.run(commit_rows(catalog, rows))

    assert result.success == 2
    assert result.failed == 1
    assert [c["name"] for c in catalog.created] == ["A", "D"]
    assert catalog.created[1]["event_id"] == 2
    assert catalog.created[1]["price"] == 70


def test_export_reimports_cleanly():
    events = make_events()
    riders = [
        Rider(id=1, event_id=1, name="Jane Doe", price=80,
              video_url="https://youtu.be/abc", thumbnail_url="https://t/1"),
        Rider(id=2, event_id=2, name="Bob Ray", price=65,
              video_url="https://v/2", thumbnail_url=""),
        Rider(id=3, event_id=9, name="Lost Rider", price=80,
              video_url="https://v/3", thumbnail_url=""),
    ]
    text = export_riders_csv(riders, events)
    lines = text.strip().split("\n")

    assert lines[0] == "Rider Name,Event,Price,Video URL,Thumbnail URL"
    assert lines[1] == '"Jane Doe","Spring Classic",80,"https://youtu.be/abc","https://t/1"'
    assert '"Event 9"' in lines[3]

    rows = parse_riders_csv(text, events)
    assert [r.valid for r in rows] == [True, True, False]
    assert rows[1].price == 65


def test_filter_riders_by_event_and_name():
    riders = [
        Rider(id=1, event_id=1, name="Jane Doe"),
        Rider(id=2, event_id=2, name="Jane Roe"),
        Rider(id=3, event_id=1, name="Bob Ray"),
    ]
    assert [r.id for r in filter_riders(riders, search="jane")] == [1, 2]
    assert [r.id for r in filter_riders(riders, event_id=1)] == [1, 3]
    assert [r.id for r in filter_riders(riders, event_id=1, search="JANE")] == [1]


def test_sort_riders():
    from datetime import datetime, timezone
    from barrelvid.csvio import sort_riders

    def at(day):
        return datetime(2024, 1, day, tzinfo=timezone.utc)

    riders = [
        Rider(id=1, event_id=1, name="Charlie", price=90, created_at=at(2)),
        Rider(id=2, event_id=1, name="alice", price=70, created_at=at(3)),
        Rider(id=3, event_id=1, name="Bob", price=80, created_at=at(1)),
    ]

    def names(*args):
        return [r.name for r in sort_riders(riders, *args)]

    assert names() == ["alice", "Bob", "Charlie"]
    assert names("name", "desc") == ["Charlie", "Bob", "alice"]
    assert names("price", "asc") == ["alice", "Bob", "Charlie"]
    assert names("createdAt", "asc") == ["Bob", "Charlie", "alice"]
    assert names("createdAt", "desc") == ["alice", "Charlie", "Bob"]
    assert names("bogus", "asc") == ["alice", "Bob", "Charlie"]
