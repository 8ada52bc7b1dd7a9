import csv
import io
import os
import sys
from datetime import date, datetime, timezone, timedelta
from decimal import Decimal

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.exports.tabular import (
    CsvFile,
    build_csv_file,
    collect_headers,
    escape_cell,
    serialize_value,
    to_csv,
)
from app.schemas.export import ExportJobStatus


def test_serialize_scalars():
    assert serialize_value(None) == ""
    assert serialize_value("plain") == "plain"
    assert serialize_value(True) == "true"
    assert serialize_value(False) == "false"
    assert serialize_value(3) == "3"
    assert serialize_value(ExportJobStatus.FAILED) == "FAILED"


def test_serialize_decimals_without_trailing_zeros():
    assert serialize_value(Decimal("12.0000")) == "12"
    assert serialize_value(Decimal("10.50")) == "10.5"
    assert serialize_value(Decimal("0.0001")) == "0.0001"
    assert serialize_value(Decimal("1E+3")) == "1000"


def test_serialize_datetimes_as_utc_iso():
    aware = datetime(2026, 1, 5, 9, 30, tzinfo=timezone(timedelta(hours=1)))
    assert serialize_value(aware) == "2026-01-05T08:30:00.000Z"
    # Naive values are taken to be UTC already
    assert serialize_value(datetime(2026, 1, 5, 8, 30, 0, 123000)) == "2026-01-05T08:30:00.123Z"
    assert serialize_value(date(2026, 2, 1)) == "2026-02-01"


def test_serialize_nested_values_as_json():
    assert serialize_value({"a": 1}) == '{"a": 1}'
    assert serialize_value([Decimal("1.50"), None]) == '["1.5", null]'


def test_escape_cell_only_when_needed():
    assert escape_cell("plain") == "plain"
    assert escape_cell("a,b") == '"a,b"'
    assert escape_cell('say "hi"') == '"say ""hi"""'
    assert escape_cell("two\nlines") == '"two\nlines"'


def test_to_csv_with_fixed_header():
    rows = [{"name": "Bottlers, Inc.", "phone": None}, {"name": "Plain", "phone": "0800", "ignored": "x"}]
    assert to_csv(["name", "phone"], rows) == 'name,phone\n"Bottlers, Inc.",\nPlain,0800'


def test_derived_header_is_sorted_union_of_keys():
    rows = [{"b": 1}, {"a": 2, "c": 3}]
    assert collect_headers(rows) == ["a", "b", "c"]
    assert to_csv(None, rows) == "a,b,c\n,1,\n2,,3"


def test_build_csv_file_counts_rows():
    csv_file = build_csv_file("things.csv", [{"x": 1}, {"x": 2}])
    assert csv_file.csv == "x\n1\n2"
    assert csv_file.rows == 2


def test_build_csv_file_without_records_is_empty():
    csv_file = build_csv_file("empty.csv", [])
    assert csv_file == CsvFile(filename="empty.csv", csv="")
    assert csv_file.rows == 0


def test_escaped_cells_read_back_with_csv_module():
    rows = [
        {"note": 'He said "hi", then left', "qty": Decimal("2.50")},
        {"note": "line one\nline two", "qty": None},
    ]
    text = to_csv(["note", "qty"], rows)

    parsed = list(csv.reader(io.StringIO(text)))

    assert parsed == [
        ["note", "qty"],
        ['He said "hi", then left', "2.5"],
        ["line one\nline two", ""],
    ]
