import datetime
import math

import pytest

from jma_catalog import (
    COLUMNS,
    CatalogRecord,
    ColumnBoundsError,
    FieldParseError,
    ParseFailure,
    decode_line,
    parse_line,
)

from catalog_lines import SCENARIO, make_line


def test_builder_matches_published_example():
    assert make_line() == SCENARIO


def test_scenario_line():
    rec = parse_line(SCENARIO)
    assert isinstance(rec, CatalogRecord)
    assert rec.date == datetime.date(2025, 5, 3)
    assert rec.time == datetime.time(9, 47, 10, 200000)
    assert rec.lat == "33.7200"
    assert rec.lon == "130.1967"
    assert rec.dep == 5.0
    assert rec.Mjma == 0.2
    assert rec.location == "福岡県北西沖"


@pytest.mark.parametrize("line", ["", "   ", "\n", "# comment", "#2025  5  3 09:47 10.2"])
def test_blank_and_comment_lines_are_skipped(line):
    assert parse_line(line) is None


def test_coordinates_are_degrees_plus_minutes():
    rec = parse_line(make_line(lat_deg="35", lat_min="30.0", lon_deg="139", lon_min=" 6.5"))
    assert rec.lat == "35.5000"
    assert rec.lon == f"{round(139 + 6.5 / 60, 4):.4f}"


def test_southern_hemisphere_negates_latitude():
    north = parse_line(make_line(ns="N"))
    south = parse_line(make_line(ns="S"))
    assert south.lat == "-" + north.lat
    assert south.lon == north.lon


def test_western_hemisphere_negates_longitude():
    east = parse_line(make_line(ew="E"))
    west = parse_line(make_line(ew="W"))
    assert west.lon == "-" + east.lon
    assert west.lat == east.lat


def test_trailing_whitespace_does_not_change_values():
    plain = parse_line(make_line())
    padded = parse_line(make_line() + "    \r\n")
    assert padded == plain


@pytest.mark.parametrize("mag", ["-", " -", "-  ", "---"])
def test_dash_magnitude_is_missing(mag):
    rec = parse_line(make_line(mag=mag))
    assert isinstance(rec, CatalogRecord)
    assert math.isnan(rec.Mjma)


def test_location_is_stripped():
    rec = parse_line(make_line(location="   東京湾  \t "))
    assert rec.location == "東京湾"


def test_ascii_location():
    rec = parse_line(make_line(location="Off Fukushima, Japan"))
    assert rec.location == "Off Fukushima, Japan"


@pytest.mark.parametrize("when, second, micro", [
    ("2025  5  3 09:47 10.2", 10, 200000),
    ("2025 5  3 09:47 10.10", 10, 100000),
    ("2025 5  3 09:47 05.25", 5, 250000),
    ("2025 5  3 09:47 59.99", 59, 990000),
])
def test_fractional_seconds(when, second, micro):
    rec = parse_line(make_line(when=when))
    assert rec.time.second == second
    assert rec.time.microsecond == micro


@pytest.mark.parametrize("seconds", ["10", "10.", "10.123", "10.a", "1x.2"])
def test_bad_seconds_are_field_errors(seconds):
    with pytest.raises(FieldParseError):
        decode_line(make_line(when=f"2025  5  3 09:47 {seconds:<4}"))


@pytest.mark.parametrize("when", [
    "2025 13  3 09:47 10.2",
    "2025  2 30 09:47 10.2",
    "2025  5  3 24:47 10.2",
    "2025  5  3 0947  10.2",
    "20x5  5  3 09:47 10.2",
])
def test_bad_date_or_time_is_a_field_failure(when):
    res = parse_line(make_line(when=when))
    assert isinstance(res, ParseFailure)
    assert res.kind == "field"
    assert isinstance(res.error, FieldParseError)


def test_bad_depth_is_a_field_failure():
    res = parse_line(make_line(depth="abc"))
    assert isinstance(res, ParseFailure)
    assert res.kind == "field"
    assert "depth" in str(res.error)


def test_short_line_is_a_column_failure():
    line = SCENARIO.encode("utf-8")[:55].decode("utf-8")
    res = parse_line(line)
    assert isinstance(res, ParseFailure)
    assert res.kind == "columns"
    assert isinstance(res.error, ColumnBoundsError)
    assert res.line == line


def test_line_ending_before_location_column_fails():
    line = make_line(location="").rstrip()
    res = parse_line(line)
    assert isinstance(res, ParseFailure)
    assert res.kind == "columns"


def test_too_few_tokens():
    with pytest.raises(ColumnBoundsError):
        decode_line("2025  5  3")


def test_failure_keeps_raw_line_without_newline():
    res = parse_line("garbage line\n")
    assert isinstance(res, ParseFailure)
    assert res.line == "garbage line"


def test_columns_can_be_substituted():
    # Same layout shifted one column to the right
    shifted = [(name, start + 1, None if end is None else end + 1) for name, start, end in COLUMNS]
    line = SCENARIO.replace("10.2  33", "10.2   33")
    assert isinstance(parse_line(line), ParseFailure)
    rec = parse_line(line, shifted)
    assert isinstance(rec, CatalogRecord)
    assert rec.lat == "33.7200"


def test_column_splitting_a_character_is_a_field_failure():
    # The three-byte character straddles the start of the location column
    line = make_line(location="X").replace("  X", " 東X")
    res = parse_line(line)
    assert isinstance(res, ParseFailure)
    assert res.kind == "field"
    assert isinstance(res.error, FieldParseError)
    assert "location" in str(res.error)
