"""
Shared test fixtures for trello-sheets-cli tests.
Patches config module to avoid loading a real .env and making API calls.
"""

import os
import sys

import pytest

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from trello_sheets.models import CardFound, CardNotFound, Settings  # noqa: E402

SETTINGS_JSON = {
    "trello": {
        "board": {
            "sprint": {
                "id": "sprintBoard",
                "listToExclude": "Backlog, Icebox",
                "sprintLabel": {"id": "lblPlanned", "name": "Planned"},
                "unplannedLabel": {"id": "lblUnplanned", "name": "Unplanned"},
            },
            "release": {"id": "releaseBoard", "listToExclude": ""},
        }
    },
    "googlesheet": {
        "sheets": {
            "backlog": {"name": "SprintBacklog", "range": "!A2:Z"},
            "unplanned": {"name": "Unplanned", "range": "!A3:Z"},
        }
    },
}


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state."""
    from trello_sheets import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "TRELLO_API_KEY", "fake-key")
    monkeypatch.setattr(config, "TRELLO_API_TOKEN", "fake-token")
    monkeypatch.setattr(config, "SPREADSHEET_ID", "fake-sheet")
    monkeypatch.setattr(config, "GOOGLE_PRIVATE_KEY_FILE_PATH", "/nonexistent/key.json")
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
    monkeypatch.setattr(config, "RUNTIME_DRY_RUN", False)
    monkeypatch.setattr(config, "RUNTIME_QUIET", False)
    monkeypatch.setattr(config, "RUNTIME_VERBOSE", False)


@pytest.fixture
def settings():
    return Settings.from_value(SETTINGS_JSON)


def make_card(card_id, name="Task", list_id="l1", labels=(), **extra):
    card = {
        "id": card_id,
        "name": name,
        "shortUrl": f"https://trello.com/c/{card_id}",
        "idList": list_id,
        "labels": [{"id": f"id-{n}", "name": n} for n in labels],
        "closed": False,
        "due": None,
        "dateLastActivity": "2026-03-01T10:00:00.000Z",
    }
    card.update(extra)
    return card


class FakeTrello:
    """In-memory stand-in for TrelloClient.

    boards: {board_id: [{id, name}, ...]}
    lists: {list_id: [card, ...]} or an Exception to raise
    cards: {(board_id, card_id): card} for get_card
    """

    def __init__(self, boards=None, lists=None, cards=None, failing_cards=None):
        self.boards = boards or {}
        self.lists = lists or {}
        self.cards = cards or {}
        self.failing_cards = failing_cards or {}
        self.labelled = []
        self.list_calls = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def list_lists(self, board_id):
        self.list_calls.append(board_id)
        lists = self.boards[board_id]
        if isinstance(lists, Exception):
            raise lists
        return lists

    async def list_cards(self, list_id):
        cards = self.lists.get(list_id, [])
        if isinstance(cards, Exception):
            raise cards
        return cards

    async def get_card(self, board_id, card_id):
        if card_id in self.failing_cards:
            raise self.failing_cards[card_id]
        card = self.cards.get((board_id, card_id))
        if card is None:
            return CardNotFound(card_id=card_id)
        return CardFound(card=card)

    async def add_label(self, card_id, label_id):
        self.labelled.append((card_id, label_id))
        return {"ok": True}


class FakeSheets:
    """In-memory stand-in for SheetsClient recording every write."""

    def __init__(self, ranges=None):
        self.ranges = ranges or {}
        self.writes = []
        self.appends = []
        self.batches = []
        self.cleared = []

    async def read_range(self, ref):
        return [list(row) for row in self.ranges.get(ref, [])]

    async def write_range(self, ref, rows):
        self.writes.append((ref, rows))
        return {"updatedRange": ref}

    async def append_rows(self, ref, rows):
        self.appends.append((ref, rows))
        return {"updates": {"updatedRows": len(rows)}}

    async def clear_range(self, ref):
        self.cleared.append(ref)
        return {"clearedRange": ref}

    async def batch_update(self, updates):
        self.batches.append(updates)
        return {"totalUpdatedRows": len(updates)}

    @property
    def write_calls(self):
        return len(self.writes) + len(self.appends) + len(self.batches) + len(self.cleared)
