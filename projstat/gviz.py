"""
gviz.py: decoder for Google Visualization (GViz) table responses

The GViz endpoint answers with a JSON object wrapped in a callback such as

    /*O_o*/
    google.visualization.Query.setResponse({"version": "0.6", "table": {...}});

Only the outermost ``{...}`` span is parsed, strictly as JSON. The payload is
never evaluated as code.
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from typing import Any, Mapping

from projstat.errors import PayloadDecodeError
from projstat.models import Dataset, normalize_row_length, render_date, stringify

DATE_LITERAL_RE = re.compile(r"^Date\((\d{1,4}),(\d{1,2}),(\d{1,2})(?:,(\d{1,2}),(\d{1,2}),(\d{1,2})(?:,\d+)?)?\)$")


def parse_gviz_payload(text: str) -> dict[str, Any]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise PayloadDecodeError("GViz payload was not recognized")

    try:
        data = json.loads(text[start : end + 1])
    except ValueError as exc:
        raise PayloadDecodeError("Could not parse GViz response") from exc

    return extract_table(data)


def extract_table(data: Any) -> dict[str, Any]:
    table = data.get("table") if isinstance(data, Mapping) else None
    if not isinstance(table, Mapping):
        raise PayloadDecodeError("GViz response had no table data")
    return dict(table)


def parse_date_literal(value: str) -> date | None:
    """Turn GViz's ``Date(2024,0,15)`` (zero-based month) into a date."""
    match = DATE_LITERAL_RE.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.group(1, 2, 3))
    try:
        return date(year, month + 1, day)
    except ValueError:
        return None


def cell_text(cell: Any) -> str:
    if not isinstance(cell, Mapping):
        return ""

    formatted = cell.get("f")
    if formatted is not None and stringify(formatted).strip():
        return stringify(formatted).strip()

    value = cell.get("v")
    if isinstance(value, datetime):
        return render_date(value.date())
    if isinstance(value, date):
        return render_date(value)
    if isinstance(value, str):
        parsed = parse_date_literal(value)
        if parsed is not None:
            return render_date(parsed)
    return stringify(value)


def column_label(column: Any, index: int) -> str:
    if isinstance(column, Mapping):
        label = stringify(column.get("label")).strip()
        column_id = stringify(column.get("id")).strip()
    else:
        label = column_id = ""
    return label or column_id or f"Column {index + 1}"


def gviz_table_to_dataset(table: Mapping[str, Any]) -> Dataset:
    columns = table.get("cols")
    headers = [column_label(column, idx) for idx, column in enumerate(columns if isinstance(columns, list) else [])]

    rows = []
    table_rows = table.get("rows")
    for row in table_rows if isinstance(table_rows, list) else []:
        cells = row.get("c") if isinstance(row, Mapping) else None
        if not isinstance(cells, list):
            cells = []
        rows.append(normalize_row_length([cell_text(cell) for cell in cells], len(headers)))

    return Dataset.build(headers, rows)


def decode_gviz(text: str) -> Dataset:
    return gviz_table_to_dataset(parse_gviz_payload(text))
