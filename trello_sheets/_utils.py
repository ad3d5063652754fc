"""
Shared pure-utility functions for trello-sheets-cli.

These helpers have no business logic. Only _warn writes (to stderr).
"""

import sys
from datetime import datetime, timezone

from trello_sheets import config


def _warn(message):
    """Print a non-fatal warning to stderr unless --quiet is set."""
    if config.RUNTIME_QUIET:
        return
    print(f"[WARN] {message}", file=sys.stderr)


def _parse_iso_timestamp(ts):
    """Parse an ISO timestamp from the API into a datetime."""
    if not ts:
        return None
    try:
        # Handle both "2026-01-15T10:30:00Z" and "2026-01-15T10:30:00.000Z"
        clean = ts.replace("Z", "+00:00")
        return datetime.fromisoformat(clean)
    except (ValueError, TypeError):
        return None


def _iso_date(ts):
    """Return the UTC calendar date (YYYY-MM-DD) of an ISO timestamp, or None."""
    parsed = _parse_iso_timestamp(ts)
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def _cell(row, index):
    """Read a cell from a sheet row that may be shorter than the layout."""
    if index < len(row):
        return row[index]
    return ""
