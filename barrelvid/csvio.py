"""
Rider bulk import / export.

Import is two-step: ``parse_riders_csv`` builds a preview where every data
line becomes an ``ImportRow`` (valid or not, with the first failing reason),
then ``commit_rows`` creates one Rider per valid row, in order, counting
successes and failures independently. Nothing is rolled back.

Expected layout::

    Rider Name,Event,Price,Video URL,Thumbnail URL
    "Jane Doe","Spring Classic",80,"https://youtu.be/abc123",""
"""
from __future__ import annotations
import csv
import io
import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import AppError, FormatError
from .model.orm import Event, Rider

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Rider Name", "Event", "Price", "Video URL", "Thumbnail URL"]
REQUIRED_HEADER_MARKERS = ("rider name", "event", "price")
DEFAULT_PRICE = 80

# a quoted run (may hold commas) or a run of plain characters,
# each followed by a comma or the end of the line
_TOKEN_RE = re.compile(r'(".*?"|[^",]+)(?=\s*,|\s*$)')


@dataclass
class ImportRow:
    name: str
    event_name: str
    price: float
    video_url: str
    thumbnail_url: str
    valid: bool
    event_id: Optional[int] = None
    error: str = ""


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0


def youtube_thumbnail(url: str) -> Optional[str]:
    if "youtube.com" not in url and "youtu.be" not in url:
        return None
    if "youtu.be/" in url:
        video_id = url.split("youtu.be/")[1].split("?")[0]
    elif "v=" in url:
        video_id = url.split("v=")[1].split("&")[0]
    else:
        video_id = ""
    if not video_id:
        return None
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def _clean(token: Optional[str]) -> str:
    if token is None:
        return ""
    return token.replace('"', "").strip()


def _parse_price(token: Optional[str]) -> float:
    try:
        price = float(_clean(token))
    except ValueError:
        return float(DEFAULT_PRICE)
    if not math.isfinite(price) or price == 0:
        return float(DEFAULT_PRICE)
    return price


def tokenize(line: str) -> List[str]:
    return _TOKEN_RE.findall(line)


def _parse_line(line: str, events_by_name: dict) -> ImportRow:
    tokens = tokenize(line)
    if len(tokens) < 3:
        return ImportRow(name="", event_name="", price=0, video_url="",
                         thumbnail_url="", valid=False,
                         error="Invalid CSV format")

    def at(i: int) -> Optional[str]:
        return tokens[i] if i < len(tokens) else None

    name = _clean(at(0))
    event_name = _clean(at(1))
    price = _parse_price(at(2))
    video_url = _clean(at(3))
    thumbnail_url = _clean(at(4))

    if not thumbnail_url and video_url:
        thumbnail_url = youtube_thumbnail(video_url) or ""

    event = events_by_name.get(event_name.lower())

    error = ""
    if not name:
        error = "Missing rider name"
    elif event is None:
        error = "Event not found"
    elif not video_url:
        error = "Missing video URL"

    return ImportRow(
        name=name,
        event_name=event_name,
        event_id=event.id if event is not None else None,
        price=price,
        video_url=video_url,
        thumbnail_url=thumbnail_url,
        valid=not error,
        error=error,
    )


def parse_riders_csv(text: str, events: Iterable[Event]) -> List[ImportRow]:
    """Parse a CSV blob into a preview of rider rows.

    Raises FormatError when the blob as a whole is unusable (too short,
    missing header columns, no data lines). Row-level problems never raise;
    they are reported on the row.
    """
    lines = text.split("\n")
    if len(lines) < 2:
        raise FormatError(
            "CSV file must have at least a header row and one data row")

    header = lines[0].lower()
    if not all(marker in header for marker in REQUIRED_HEADER_MARKERS):
        raise FormatError(
            "CSV headers must include 'Rider Name', 'Event', 'Price'")

    data_lines = [line for line in lines[1:] if line.strip() != ""]
    if not data_lines:
        raise FormatError("No data found in CSV file")

    # first event wins on duplicate names
    events_by_name = {}
    for ev in events:
        events_by_name.setdefault(ev.name.lower(), ev)

    return [_parse_line(line, events_by_name) for line in data_lines]


async def commit_rows(catalog, rows: Iterable[ImportRow]) -> ImportResult:
    result = ImportResult()
    for row in rows:
        if not row.valid or row.event_id is None:
            continue
        try:
            await catalog.create_rider(
                event_id=row.event_id,
                name=row.name,
                price=int(round(row.price)),
                video_url=row.video_url,
                thumbnail_url=row.thumbnail_url,
            )
        except AppError as e:
            logger.warning("import of rider %r failed: %s", row.name, e)
            result.failed += 1
        else:
            result.success += 1
    logger.info("csv import finished: %d created, %d failed",
                result.success, result.failed)
    return result


def filter_riders(riders: Iterable[Rider], event_id: Optional[int] = None,
                  search: str = "") -> List[Rider]:
    q = search.lower()
    return [
        r for r in riders
        if (event_id is None or r.event_id == event_id)
        and (not q or q in r.name.lower())
    ]


SORT_FIELDS = {
    "name": lambda r: r.name.lower(),
    "price": lambda r: r.price,
    "createdAt": lambda r: (r.created_at is None, r.created_at or 0, r.id),
}


def sort_riders(riders: Iterable[Rider], field: str = "name",
                direction: str = "asc") -> List[Rider]:
    # unknown fields fall back to name
    key = SORT_FIELDS.get(field, SORT_FIELDS["name"])
    return sorted(riders, key=key, reverse=(direction == "desc"))


def export_riders_csv(riders: Iterable[Rider], events: Iterable[Event]) -> str:
    names = {ev.id: ev.name for ev in events}
    buf = io.StringIO()
    buf.write(",".join(EXPORT_HEADERS) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for r in riders:
        writer.writerow([
            r.name,
            names.get(r.event_id, f"Event {r.event_id}"),
            int(r.price),
            r.video_url,
            r.thumbnail_url or "",
        ])
    return buf.getvalue()
