#!/usr/bin/env python3
"""
Convert a JMA fixed-width hypocenter catalog to a comma-delimited (CSV) file.

Input (one event per line; blank lines and '#' comments are ignored):
  2025  5  3 09:47 10.2  33°43.2'N 130°11.8'E    5     0.2  福岡県北西沖

Output:
  date,time,lat,lon,dep,Mjma,location
  2025-05-03,09:47:10.2,33.7200,130.1967,5,0.2,福岡県北西沖

Lines that fail to parse are reported on stderr and skipped.

Usage:
  python jma_to_csv.py input.txt output.csv

Optional env vars:
  NA_REP          text written for a missing magnitude (default: NaN)
  SHOW_PROGRESS   "1" to show a progress bar while parsing (default: 0)
"""

from __future__ import annotations

import csv
import datetime
import os
import stat
import sys
import tempfile
from pathlib import Path

import numpy as np
from tqdm import tqdm

from jma_catalog import COLUMNS, FIELDNAMES, CatalogRecord, ParseFailure, parse_line

NA_REP = os.getenv("NA_REP", "NaN")
SHOW_PROGRESS = os.getenv("SHOW_PROGRESS", "0") == "1"


def format_time(t: datetime.time) -> str:
    """HH:MM:SS, plus the milliseconds without trailing zeros when non-zero."""
    text = t.strftime("%H:%M:%S")
    ms = t.microsecond // 1000
    if ms:
        text += f".{ms:03d}".rstrip("0")
    return text


def format_number(x: float, na_rep: str = NA_REP) -> str:
    if np.isnan(x):
        return na_rep
    if float(x).is_integer():
        return str(int(x))
    return repr(float(x))


def to_row(rec: CatalogRecord, na_rep: str = NA_REP) -> dict:
    return {
        "date": rec.date.isoformat(),
        "time": format_time(rec.time),
        "lat": rec.lat,
        "lon": rec.lon,
        "dep": format_number(rec.dep, na_rep),
        "Mjma": format_number(rec.Mjma, na_rep),
        "location": rec.location,
    }


def convert(lines, columns=COLUMNS, progress: bool = SHOW_PROGRESS) -> tuple[list[CatalogRecord], int]:
    """
    Parse every line in order.

    Returns (records, n_failed). Each failed line is reported on stderr;
    blank and comment lines are neither kept nor counted.
    """
    records: list[CatalogRecord] = []
    failed = 0

    for line in tqdm(lines, desc="Parsing", unit="line", disable=not progress):
        res = parse_line(line, columns)
        if res is None:
            continue
        if isinstance(res, ParseFailure):
            failed += 1
            tqdm.write(f"[WARN] Failed to parse line: {res.line} ({res.kind}: {res.error})",
                       file=sys.stderr)
            continue
        records.append(res)

    return records, failed


def _output_mode(out_path: Path) -> int:
    """Mode a plain open() would give: the existing file's, else 0o666 minus umask."""
    if out_path.exists():
        return stat.S_IMODE(out_path.stat().st_mode)
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def write_csv(records: list[CatalogRecord], out_path, na_rep: str = NA_REP) -> int:
    """
    Write records to out_path with a header row. Returns the number of rows.

    The table goes to a temporary file next to out_path first, so out_path
    only ever holds a complete table.
    """
    out_path = Path(out_path)
    tmp = tempfile.NamedTemporaryFile(
        "w", newline="", encoding="utf-8", dir=out_path.parent, suffix=".tmp", delete=False
    )
    tmp_path = Path(tmp.name)
    try:
        with tmp as fout:
            writer = csv.DictWriter(fout, fieldnames=FIELDNAMES)
            writer.writeheader()
            for rec in records:
                writer.writerow(to_row(rec, na_rep))
        os.chmod(tmp_path, _output_mode(out_path))
        tmp_path.replace(out_path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    return len(records)


def jma_to_csv(input_file, output_file) -> int:
    """Convert input_file to CSV at output_file; returns the number of records written."""
    in_path = Path(input_file)
    out_path = Path(output_file)

    with in_path.open("r", encoding="utf-8-sig", errors="replace") as fin:
        lines = fin.readlines()

    records, failed = convert(lines)
    n = write_csv(records, out_path)

    if failed:
        print(f"[INFO] Skipped {failed} unparsable line(s)", file=sys.stderr)
    print(f"Successfully converted {n} records to {out_path}")
    return n


def main():
    if len(sys.argv) != 3:
        print("Usage: python jma_to_csv.py input.txt output.csv", file=sys.stderr)
        sys.exit(2)

    in_path = Path(sys.argv[1]).expanduser()
    out_path = Path(sys.argv[2]).expanduser()
    jma_to_csv(in_path, out_path)


if __name__ == "__main__":
    main()
