"""
Decode one line of a JMA fixed-width hypocenter catalog.

Line layout (one event per line):
  2025  5  3 09:47 10.2  33°43.2'N 130°11.8'E    5     0.2  福岡県北西沖

Date and time are whitespace-delimited tokens; everything else sits in
fixed columns (see COLUMNS). Columns are counted in UTF-8 bytes, which is
how the published layout lines up with the two-byte degree sign.
"""

from __future__ import annotations

import datetime
from typing import NamedTuple

import numpy as np

# Fixed-width layout: (field_name, start_col_1based, end_col_1based_inclusive)
# end=None runs to the end of the line.
COLUMNS = [
    ("lat_deg",  23, 25),
    ("lat_min",  28, 31),
    ("lat_hemi", 33, 33),
    ("lon_deg",  35, 37),
    ("lon_min",  40, 43),
    ("lon_hemi", 45, 45),
    ("depth",    47, 50),
    ("mag",      56, 58),
    ("location", 61, None),
]

FIELDNAMES = ["date", "time", "lat", "lon", "dep", "Mjma", "location"]

SOUTH = "S"
WEST = "W"
MISSING_MARK = "-"
MISSING = np.nan


class CatalogRecord(NamedTuple):
    date: datetime.date
    time: datetime.time
    lat: str
    lon: str
    dep: float
    Mjma: float
    location: str


class ParseFailure(NamedTuple):
    line: str
    kind: str
    error: Exception


class CatalogLineError(ValueError):
    kind = "field"


class FieldParseError(CatalogLineError):
    """A token or column did not convert, or a date/time is out of range."""
    kind = "field"


class ColumnBoundsError(CatalogLineError):
    """The line is too short for the fixed-width layout."""
    kind = "columns"


def _slice(raw: bytes, name: str, start: int, end: int | None) -> str:
    """Return the text between 1-based inclusive byte columns."""
    i0 = start - 1
    if end is None:
        if len(raw) < start:
            raise ColumnBoundsError(
                f"{name}: needs column {start}, line has {len(raw)}")
        chunk = raw[i0:]
    else:
        if len(raw) < end:
            raise ColumnBoundsError(
                f"{name}: needs columns {start}-{end}, line has {len(raw)}")
        chunk = raw[i0:end]
    try:
        return chunk.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FieldParseError(f"{name}: columns {start}-{end} split a character") from e


def _to_int(s: str, name: str) -> int:
    try:
        return int(s)
    except ValueError as e:
        raise FieldParseError(f"{name}: not an integer: {s!r}") from e


def _to_float(s: str, name: str) -> float:
    try:
        return float(s)
    except ValueError as e:
        raise FieldParseError(f"{name}: not a number: {s!r}") from e


def _parse_date(tokens: list[str]) -> datetime.date:
    year = _to_int(tokens[0], "year")
    month = _to_int(tokens[1], "month")
    day = _to_int(tokens[2], "day")
    try:
        return datetime.date(year, month, day)
    except ValueError as e:
        raise FieldParseError(f"date: {e}") from e


def _parse_time(hhmm: str, ss: str) -> datetime.time:
    parts = hhmm.split(":")
    if len(parts) != 2:
        raise FieldParseError(f"time: expected HH:MM, got {hhmm!r}")
    hour = _to_int(parts[0], "hour")
    minute = _to_int(parts[1], "minute")

    # Seconds carry one or two fractional digits (tenths or hundredths)
    sec_text, dot, frac = ss.partition(".")
    if not dot or not 1 <= len(frac) <= 2 or not (frac.isascii() and frac.isdigit()):
        raise FieldParseError(f"second: expected SS.f or SS.ff, got {ss!r}")
    second = _to_int(sec_text, "second")
    millisecond = int(frac.ljust(3, "0"))

    try:
        return datetime.time(hour, minute, second, millisecond * 1000)
    except ValueError as e:
        raise FieldParseError(f"time: {e}") from e


def _coordinate(deg: str, minutes: str, hemi: str, negative: str, name: str) -> float:
    value = _to_int(deg, f"{name}_deg") + _to_float(minutes, f"{name}_min") / 60.0
    if hemi == negative:
        value = -value
    return round(value, 4)


def decode_line(line: str, columns=COLUMNS) -> CatalogRecord:
    """
    Decode a single catalog line into a CatalogRecord.

    Raises FieldParseError or ColumnBoundsError (both CatalogLineError).
    """
    tokens = line.split()
    if len(tokens) < 5:
        raise ColumnBoundsError(f"expected at least 5 fields, got {len(tokens)}")

    date = _parse_date(tokens)
    time = _parse_time(tokens[3], tokens[4])

    raw = line.encode("utf-8")
    col = {name: _slice(raw, name, start, end) for name, start, end in columns}

    lat = _coordinate(col["lat_deg"], col["lat_min"], col["lat_hemi"], SOUTH, "lat")
    lon = _coordinate(col["lon_deg"], col["lon_min"], col["lon_hemi"], WEST, "lon")

    depth = _to_float(col["depth"], "depth")

    mag_text = col["mag"].strip()
    if mag_text.startswith(MISSING_MARK):
        magnitude = MISSING
    else:
        magnitude = _to_float(mag_text, "mag")

    return CatalogRecord(
        date=date,
        time=time,
        lat=f"{lat:.4f}",
        lon=f"{lon:.4f}",
        dep=depth,
        Mjma=magnitude,
        location=col["location"].strip(),
    )


def parse_line(line: str, columns=COLUMNS) -> CatalogRecord | ParseFailure | None:
    """
    Parse one raw catalog line.

    Returns None for blank (including whitespace-only) and '#' comment
    lines, a ParseFailure for lines that cannot be decoded, and a
    CatalogRecord otherwise.
    """
    line = line.rstrip("\r\n")
    if not line.strip() or line.startswith("#"):
        return None

    try:
        return decode_line(line, columns)
    except CatalogLineError as e:
        return ParseFailure(line=line, kind=e.kind, error=e)
