#!/usr/bin/env python3
"""
Build an ObsPy Catalog from a CSV written by jma_to_csv.py and save it as QuakeML.

Usage:
  python csv_to_quakeml.py catalog.csv events.xml

Input CSV columns:
  date, time, lat, lon, dep, Mjma, location

Optional env vars:
  UTC_OFFSET_H   hours between catalog time and UTC (default: 9, JST)
  MAG_TYPE       magnitude type stored on each event (default: Mj)
"""

from __future__ import annotations

import csv
import datetime
import os
import sys
from pathlib import Path

import numpy as np
from obspy import UTCDateTime
from obspy.core.event import Catalog, Event, EventDescription, Magnitude, Origin

from jma_catalog import FIELDNAMES, MISSING, CatalogRecord

UTC_OFFSET_H = float(os.getenv("UTC_OFFSET_H", "9"))
MAG_TYPE = os.getenv("MAG_TYPE", "Mj")

MISSING_TEXT = {"", "nan", "none"}


def parse_time(s: str) -> datetime.time:
    # Handles "09:47:10", "09:47:10.2", "09:47:10.25"
    hms, _, frac = s.strip().partition(".")
    hour, minute, second = (int(v) for v in hms.split(":"))
    ms = int(frac[:3].ljust(3, "0")) if frac else 0
    return datetime.time(hour, minute, second, ms * 1000)


def read_catalog_csv(csv_path) -> list[CatalogRecord]:
    csv_path = Path(csv_path)
    records = []
    with csv_path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        missing = set(FIELDNAMES) - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"CSV missing required columns: {sorted(missing)}")

        for row in reader:
            if not any((row.get(k) or "").strip() for k in FIELDNAMES):
                continue
            mag = (row["Mjma"] or "").strip()
            records.append(
                CatalogRecord(
                    date=datetime.date.fromisoformat(row["date"].strip()),
                    time=parse_time(row["time"]),
                    lat=row["lat"].strip(),
                    lon=row["lon"].strip(),
                    dep=float(row["dep"]),
                    Mjma=MISSING if mag.lower() in MISSING_TEXT else float(mag),
                    location=(row["location"] or "").strip(),
                )
            )
    return records


def to_catalog(records, utc_offset_h: float = UTC_OFFSET_H, mag_type: str = MAG_TYPE) -> Catalog:
    """
    One Event per record. Origin time is shifted to UTC by utc_offset_h and
    depth is converted from km to m. Missing magnitudes produce no Magnitude.
    """
    cat = Catalog()
    for rec in records:
        local = datetime.datetime.combine(rec.date, rec.time)
        ot = UTCDateTime(local) - utc_offset_h * 3600.0

        ev = Event(event_type="earthquake")
        ori = Origin(
            time=ot,
            latitude=float(rec.lat),
            longitude=float(rec.lon),
            depth=rec.dep * 1000.0,  # km -> m
        )
        ev.origins.append(ori)
        ev.preferred_origin_id = ori.resource_id

        if not np.isnan(rec.Mjma):
            mag = Magnitude(mag=rec.Mjma, magnitude_type=mag_type, origin_id=ori.resource_id)
            ev.magnitudes.append(mag)
            ev.preferred_magnitude_id = mag.resource_id

        if rec.location:
            ev.event_descriptions.append(EventDescription(text=rec.location, type="region name"))

        cat.append(ev)
    return cat


def main():
    if len(sys.argv) != 3:
        print("Usage: python csv_to_quakeml.py catalog.csv events.xml", file=sys.stderr)
        sys.exit(2)

    csv_path = Path(sys.argv[1]).expanduser().resolve()
    out_path = Path(sys.argv[2]).expanduser().resolve()

    records = read_catalog_csv(csv_path)
    if not records:
        print("No events found in CSV.", file=sys.stderr)
        sys.exit(1)

    cat = to_catalog(records)
    cat.write(str(out_path), format="QUAKEML")
    print(f"Wrote {len(cat)} event(s) to {out_path}")


if __name__ == "__main__":
    main()
