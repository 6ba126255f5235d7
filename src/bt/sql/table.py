"""Render query responses as bordered text tables or JSON."""

from __future__ import annotations

import json
from typing import Any

from bt.sql.response import SqlResponse
from bt.tui.utils import display_width, pad_to_width

NO_ROWS = "(no rows)"


def extract_headers(schema: Any) -> list[str]:
    """Column names from an array-of-records schema, or ``[]``.

    Only ``{"items": {"properties": {<column>: ...}}}`` is understood.
    """
    if not isinstance(schema, dict):
        return []
    items = schema.get("items")
    if not isinstance(items, dict):
        return []
    properties = items.get("properties")
    if not isinstance(properties, dict):
        return []
    return list(properties)


def _row_headers(rows: list[dict[str, Any]]) -> list[str]:
    # Without a schema, columns come from the rows, which must agree on them.
    if not rows:
        return []
    headers = list(rows[0])
    keys = set(headers)
    if any(set(row) != keys for row in rows[1:]):
        return []
    return headers


def format_cell(value: Any, present: bool = True) -> str:
    if not present:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def render_table(response: SqlResponse) -> str | None:
    """Render *response* as a table, or ``None`` when it has no tabular shape."""
    headers = extract_headers(response.schema_) or _row_headers(response.data)

    if not headers:
        if not response.data:
            return NO_ROWS
        return None

    rows = [
        [format_cell(row.get(header), header in row) for header in headers]
        for row in response.data
    ]
    return build_table(headers, rows)


def build_table(headers: list[str], rows: list[list[str]]) -> str:
    widths = [display_width(header) for header in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], display_width(cell))

    separator = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    lines = [separator, _build_row(headers, widths), separator]
    lines.extend(_build_row(row, widths) for row in rows)
    lines.append(separator)
    return "\n".join(lines)


def _build_row(cells: list[str], widths: list[int]) -> str:
    return "|" + "|".join(f" {pad_to_width(cell, width)} " for cell, width in zip(cells, widths)) + "|"


def format_response(response: SqlResponse, json_output: bool) -> str:
    """Text to show for *response*: compact JSON, a table, or pretty JSON."""
    if json_output:
        return response.to_json()
    table = render_table(response)
    if table is not None:
        return table
    return response.to_json(pretty=True)
