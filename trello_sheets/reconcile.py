"""
Sheet reconciliation: turn fetched card records plus current sheet rows into
the smallest write that brings a sheet view up to date.

Three strategies:
  populate_backlog   write planned cards into an empty backlog view
  append_unplanned   append unplanned cards whose id is not in the view yet
  refresh_rows       overwrite every row with the card's current state

The pure helpers (rows_to_append, refresh_updates) hold the decisions. The
async functions do the I/O around them and return a summary dict.
"""

import asyncio

from trello_sheets import config
from trello_sheets._utils import _cell, _warn
from trello_sheets.cards import BoardListCache, fetch_cards, lookup_card
from trello_sheets.exceptions import SetupError, SheetNotEmptyError
from trello_sheets.models import SHEET_COLUMNS

IDENTIFIER_COLUMN = SHEET_COLUMNS.index("identifier")
LAST_COLUMN = chr(ord("A") + len(SHEET_COLUMNS) - 1)


def existing_identifiers(rows):
    return {_cell(row, IDENTIFIER_COLUMN) for row in rows if _cell(row, IDENTIFIER_COLUMN)}


def rows_to_append(existing_rows, records):
    """Records whose identifier is not already in *existing_rows*, as sheet rows."""
    seen = existing_identifiers(existing_rows)
    fresh = []
    for record in records:
        if record.identifier in seen:
            continue
        seen.add(record.identifier)
        fresh.append(record.to_row())
    return fresh


def refresh_updates(view, rows, outcomes):
    """Build batch-update entries for *rows* given one lookup outcome per row.

    An outcome is a CardRecord (use it), None (card gone, keep the row) or an
    exception (lookup failed, keep the row). Row N of *rows* always maps to
    sheet row ``view.start_row + N``. Kept rows are cut to the card columns so
    every entry fits its ``A:H`` range.
    """
    updates = []
    for offset, (row, outcome) in enumerate(zip(rows, outcomes)):
        if outcome is None or isinstance(outcome, BaseException):
            values = row[: len(SHEET_COLUMNS)]
        else:
            values = outcome.to_row()
        updates.append(
            {
                "range": view.row_ref(view.start_row + offset, LAST_COLUMN),
                "values": [list(values)],
            }
        )
    return updates


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


async def _settled(*aws):
    """Gather *aws*, letting every one finish, then raise the first failure."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


async def populate_backlog(trello, sheets, settings):
    """Write the sprint's planned cards into the (empty) backlog view."""
    view = settings.sheet("backlog")
    if await sheets.read_range(view.ref):
        raise SheetNotEmptyError(
            "[REFUSED] Sprint backlog already contains data. If it's for a new sprint "
            "please clear it first using the clear operation."
        )
    partition = await fetch_cards(trello, settings.sprint_board)
    rows = [record.to_row() for record in partition.planned]
    result = {"operation": "createBacklog", "range": view.anchor_ref(), "written": len(rows)}
    if not rows:
        return result
    if config.RUNTIME_DRY_RUN:
        return {**result, "dry_run": True, "rows": rows}
    await sheets.write_range(view.anchor_ref(), rows)
    return result


async def append_unplanned(trello, sheets, settings):
    """Append unplanned cards that the unplanned view does not list yet."""
    view = settings.sheet("unplanned")
    partition, existing = await _settled(
        fetch_cards(trello, settings.sprint_board),
        sheets.read_range(view.ref),
    )
    rows = rows_to_append(existing, partition.unplanned)
    result = {
        "operation": "addToUnplanned",
        "range": view.anchor_ref(),
        "existing": len(existing),
        "appended": len(rows),
    }
    if not rows:
        return result
    if config.RUNTIME_DRY_RUN:
        return {**result, "dry_run": True, "rows": rows}
    await sheets.append_rows(view.anchor_ref(), rows)
    return result


async def _lookup_row(trello, settings, row, list_cache):
    card_id = _cell(row, IDENTIFIER_COLUMN)
    if not card_id:
        return None
    return await lookup_card(trello, settings, card_id, list_cache)


async def refresh_rows(trello, sheets, settings, sheet_name):
    """Re-read every card listed in a view and overwrite its row."""
    view = settings.sheet(sheet_name)
    rows = await sheets.read_range(view.ref)
    result = {"operation": "updateSheet", "sheet": view.name, "rows": len(rows)}
    if not rows:
        return {**result, "updated": 0, "kept": 0}
    list_cache = BoardListCache(trello)
    outcomes = await asyncio.gather(
        *(_lookup_row(trello, settings, row, list_cache) for row in rows),
        return_exceptions=True,
    )
    # Rejected credentials abort the refresh before any write.
    for outcome in outcomes:
        if isinstance(outcome, SetupError):
            raise outcome
    for row, outcome in zip(rows, outcomes):
        if isinstance(outcome, BaseException):
            _warn(f"Keeping row for card {_cell(row, IDENTIFIER_COLUMN)!r}: {outcome}")
    updates = refresh_updates(view, rows, outcomes)
    updated = sum(1 for o in outcomes if o is not None and not isinstance(o, BaseException))
    result = {**result, "updated": updated, "kept": len(rows) - updated}
    if config.RUNTIME_DRY_RUN:
        return {**result, "dry_run": True, "updates": updates}
    await sheets.batch_update(updates)
    return result
