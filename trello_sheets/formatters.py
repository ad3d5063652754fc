"""Output dispatchers and table formatters for trello-sheets-cli."""

import json
import re

from trello_sheets.models import SHEET_COLUMNS

_CONTROL_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_ROW_WIDTHS = {"name": 40, "identifier": 26, "url": 32, "member": 12, "status": 14, "due": 10}


def _trunc(s, maxlen):
    """Truncate string with ellipsis indicator."""
    if not s:
        return ""
    return s[: maxlen - 1] + "…" if len(s) > maxlen else s


def _sanitize_str(s):
    """Strip ANSI escape sequences and control chars from table output."""
    if not s:
        return s
    return _CONTROL_RE.sub("", str(s))


def _table(columns, rows, footer=None):
    """Build a formatted table string.
    columns: list of (name, width) tuples. Last column has no width (fills).
    rows: list of tuples matching columns."""
    parts = []
    for i, (name, width) in enumerate(columns):
        if i == len(columns) - 1:
            parts.append(name)
        else:
            parts.append(f"{name:<{width}}")
    header = " ".join(parts)
    lines = [header, "-" * max(len(header), 90)]
    for row in rows:
        parts = []
        for i, val in enumerate(row):
            safe = _sanitize_str(val) if isinstance(val, str) else str(val)
            if i == len(columns) - 1:
                parts.append(safe)
            else:
                parts.append(f"{safe:<{columns[i][1]}}")
        lines.append(" ".join(parts))
    if footer:
        lines.append(f"\n{footer}")
    return "\n".join(lines)


def output(data, formatter=None, fmt="json"):
    """Output data in requested format."""
    if fmt == "table" and formatter:
        print(formatter(data))
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def format_rows_table(data):
    """Sheet rows as a table, using the card column layout."""
    rows = data.get("values") or []
    columns = [(name, _ROW_WIDTHS.get(name, 9)) for name in SHEET_COLUMNS]
    table_rows = []
    for row in rows:
        cells = list(row) + [""] * (len(SHEET_COLUMNS) - len(row))
        table_rows.append(
            tuple(
                _trunc(str(cell), width) for cell, (_name, width) in zip(cells, columns)
            )
        )
    return _table(columns, table_rows, footer=f"{len(rows)} row(s) in {data.get('range', '')}")


def format_summary_table(data):
    """Key/value summary for mutation results."""
    lines = []
    for key, value in data.items():
        if isinstance(value, (list, dict)):
            value = f"{len(value)} item(s)"
        lines.append(f"{key + ':':<14} {value}")
    return "\n".join(lines)
