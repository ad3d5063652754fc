"""
Command implementations for trello-sheets-cli.
Each cmd_*() function receives an argparse.Namespace and handles one operation.

Sync logic lives in reconcile.py and cards.py. These wrappers load settings,
open the clients, run the coroutine, and print the result.
"""

import asyncio

from trello_sheets import config
from trello_sheets.api import TrelloClient
from trello_sheets.cards import add_sprint_label
from trello_sheets.exceptions import CliError
from trello_sheets.formatters import format_rows_table, format_summary_table, output
from trello_sheets.reconcile import append_unplanned, populate_backlog, refresh_rows
from trello_sheets.sheets import SheetsClient


def _trello_client():
    return TrelloClient()


def _sheets_client():
    return SheetsClient()


async def _with_trello(run):
    async with _trello_client() as trello:
        return await run(trello)


# ---------------------------------------------------------------------------
# Sheet-only commands
# ---------------------------------------------------------------------------


def cmd_get(ns):
    settings = config.require_settings(needs_trello=False)
    view = settings.sheet(ns.sheet)
    rows = asyncio.run(_sheets_client().read_range(view.ref))
    output({"range": view.ref, "values": rows}, format_rows_table, ns.format)


def cmd_clear(ns):
    settings = config.require_settings(needs_trello=False)
    view = settings.sheet(ns.sheet)
    if config.RUNTIME_DRY_RUN:
        output(
            {"operation": "clear", "range": view.ref, "dry_run": True},
            format_summary_table,
            ns.format,
        )
        return
    response = asyncio.run(_sheets_client().clear_range(view.ref))
    output(
        {"operation": "clear", "range": (response or {}).get("clearedRange", view.ref)},
        format_summary_table,
        ns.format,
    )


# ---------------------------------------------------------------------------
# Board + sheet commands
# ---------------------------------------------------------------------------


def cmd_create_backlog(ns):
    settings = config.require_settings()
    sheets = _sheets_client()
    result = asyncio.run(_with_trello(lambda trello: populate_backlog(trello, sheets, settings)))
    output(result, format_summary_table, ns.format)


def cmd_add_to_unplanned(ns):
    settings = config.require_settings()
    if settings.sprint_board.label_strategy is None:
        raise CliError("[ERROR] addToUnplanned needs a sprint label on the sprint board config.")
    sheets = _sheets_client()
    result = asyncio.run(_with_trello(lambda trello: append_unplanned(trello, sheets, settings)))
    output(result, format_summary_table, ns.format)


def cmd_update_sheet(ns):
    settings = config.require_settings()
    sheets = _sheets_client()
    result = asyncio.run(
        _with_trello(lambda trello: refresh_rows(trello, sheets, settings, ns.sheet))
    )
    output(result, format_summary_table, ns.format)


def cmd_add_sprint_label(ns):
    settings = config.require_settings(needs_sheets=False)
    board = settings.sprint_board
    if board.sprint_label is None or not board.sprint_label.id:
        raise CliError("[ERROR] addSprintLabel needs sprintLabel.id on the sprint board config.")
    result = asyncio.run(_with_trello(lambda trello: add_sprint_label(trello, board)))
    output(result, format_summary_table, ns.format)


OPERATIONS = {
    "get": cmd_get,
    "clear": cmd_clear,
    "createBacklog": cmd_create_backlog,
    "addToUnplanned": cmd_add_to_unplanned,
    "updateSheet": cmd_update_sheet,
    "addSprintLabel": cmd_add_sprint_label,
}
