"""trello-sheets-cli: keep a sprint spreadsheet in sync with a Trello board."""

from trello_sheets.api import TrelloClient
from trello_sheets.cards import fetch_cards, lookup_card, normalize_card, parse_card_title
from trello_sheets.config import VERSION
from trello_sheets.exceptions import CliError, SetupError, SheetNotEmptyError
from trello_sheets.models import (
    BoardConfig,
    CardMeta,
    CardRecord,
    ExplicitUnplannedLabel,
    ImplicitUnplannedByAbsence,
    Label,
    Partition,
    Settings,
    SheetView,
)
from trello_sheets.reconcile import append_unplanned, populate_backlog, refresh_rows
from trello_sheets.sheets import SheetsClient

__all__ = [
    "VERSION",
    "TrelloClient",
    "SheetsClient",
    "CliError",
    "SetupError",
    "SheetNotEmptyError",
    "BoardConfig",
    "CardMeta",
    "CardRecord",
    "ExplicitUnplannedLabel",
    "ImplicitUnplannedByAbsence",
    "Label",
    "Partition",
    "Settings",
    "SheetView",
    "append_unplanned",
    "fetch_cards",
    "lookup_card",
    "normalize_card",
    "parse_card_title",
    "populate_backlog",
    "refresh_rows",
]
