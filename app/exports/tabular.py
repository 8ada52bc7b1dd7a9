"""CSV rendering for export files.

Rows are plain mappings; cells go through ``serialize_value`` and are escaped
only when they contain a comma, a double quote or a newline. When no header is
given, the header is the sorted union of every key seen in any row so that the
column order does not depend on row order or on which rows carry optional
fields.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence


@dataclass(frozen=True)
class CsvFile:
    filename: str
    csv: str

    @property
    def rows(self) -> int:
        """Number of data rows, header excluded."""
        if not self.csv:
            return 0
        return len(self.csv.split("\n")) - 1


def format_decimal(value: Decimal) -> str:
    if value == value.to_integral_value():
        return format(value.quantize(Decimal(1)), "f")
    return format(value.normalize(), "f")


def _isoformat(value: Any) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return value.isoformat()


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return _isoformat(value)
    if isinstance(value, Decimal):
        return format_decimal(value)
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _has_custom_str(value: Any) -> bool:
    return type(value).__str__ is not object.__str__


def serialize_value(value: Any) -> str:
    """Render a single cell value as text."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return serialize_value(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return _isoformat(value)
    if isinstance(value, Decimal):
        # Fixed-point with trailing zeros dropped, never scientific notation
        return format_decimal(value)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=_json_default)
    if _has_custom_str(value):
        printed = str(value)
        if printed:
            return printed
    return json.dumps(value, default=_json_default)


def escape_cell(value: str) -> str:
    if "," in value or '"' in value or "\n" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def collect_headers(rows: Iterable[Mapping[str, Any]]) -> List[str]:
    keys = set()
    for row in rows:
        keys.update(row.keys())
    return sorted(keys)


def to_csv(headers: Optional[Sequence[str]], rows: Sequence[Mapping[str, Any]]) -> str:
    if headers is None:
        headers = collect_headers(rows)
    lines = [",".join(escape_cell(str(header)) for header in headers)]
    for row in rows:
        lines.append(",".join(escape_cell(serialize_value(row.get(header))) for header in headers))
    return "\n".join(lines)


def build_csv_file(filename: str, records: Sequence[Mapping[str, Any]]) -> CsvFile:
    """Render heterogeneous records with a derived header; no records means an empty file."""
    if not records:
        return CsvFile(filename=filename, csv="")
    return CsvFile(filename=filename, csv=to_csv(None, records))
