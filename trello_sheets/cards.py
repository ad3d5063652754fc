"""
Card parsing, normalization, board aggregation, and cross-board lookup
for trello-sheets-cli.
"""

import asyncio
import re

from trello_sheets import config
from trello_sheets._utils import _iso_date, _warn
from trello_sheets.models import (
    PLANNED,
    UNPLANNED,
    CardFound,
    CardMeta,
    CardRecord,
    Partition,
)

# ---------------------------------------------------------------------------
# Title metadata
# ---------------------------------------------------------------------------

# Titles follow the scrum-for-trello convention "(16) alice/do-thing [20]":
# leading (estimate), optional "member/" prefix, trailing [consumed].
_NUMBER = r"[-+]?[0-9]*\.?[0-9]+"
_ESTIMATE_RE = re.compile(rf"^\(({_NUMBER})\)")
_CONSUMED_RE = re.compile(rf"\[({_NUMBER})\]$")
_MEMBER_RE = re.compile(rf"^(?:\({_NUMBER}\)\s)?([a-zA-Z0-9_-]+)/")


def _match_number(pattern, title):
    match = pattern.search(title)
    if not match:
        return None
    return float(match.group(1))


def parse_card_title(title):
    """Extract estimate, consumed points and member from a card title.

    Never raises: anything that does not match is left empty.
    """
    title = title or ""
    member = _MEMBER_RE.match(title)
    return CardMeta(
        estimate=_match_number(_ESTIMATE_RE, title),
        consumed=_match_number(_CONSUMED_RE, title),
        member=member.group(1) if member else "",
    )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _card_status(card, list_names):
    if card.get("closed"):
        return "Ready" if card.get("due") else "Archived"
    return list_names.get(card.get("idList"), "")


def _card_due(card):
    if card.get("due"):
        return _iso_date(card["due"])
    if card.get("closed"):
        return _iso_date(card.get("dateLastActivity"))
    return None


def normalize_card(card, list_names):
    """Map a raw Trello card and its {list_id: name} lookup to a CardRecord."""
    meta = parse_card_title(card.get("name"))
    return CardRecord(
        name=card.get("name") or "",
        identifier=card.get("id") or "",
        url=card.get("shortUrl") or card.get("url") or "",
        estimate=meta.estimate,
        consumed=meta.consumed,
        member=meta.member,
        status=_card_status(card, list_names),
        due=_card_due(card),
    )


# ---------------------------------------------------------------------------
# Board aggregation
# ---------------------------------------------------------------------------


async def fetch_list_names(client, board):
    """Return {list_id: name} for lists on *board* that are not excluded.
    A failure here propagates: there is no partial board state."""
    lists = await client.list_lists(board.id)
    return {
        lst["id"]: lst["name"]
        for lst in lists
        if lst.get("name") and lst["name"] not in board.list_to_exclude
    }


async def _cards_on_list(client, list_id, list_name):
    try:
        return await client.list_cards(list_id)
    except Exception as e:
        _warn(f"Could not fetch cards of list '{list_name}' ({list_id}): {e}")
        return []


def partition_cards(cards, list_names, strategy):
    """Split cards into planned/unplanned records using the label strategy."""
    result = Partition(all=list(cards))
    if strategy is None:
        return result
    for card in result.all:
        bucket = strategy.classify(card)
        if bucket == PLANNED:
            result.planned.append(normalize_card(card, list_names))
        elif bucket == UNPLANNED:
            result.unplanned.append(normalize_card(card, list_names))
    return result


async def fetch_cards(client, board):
    """Fetch every card on the board's non-excluded lists and partition them.

    Lists are fetched concurrently. A list whose card fetch fails is
    reported and contributes no cards.
    """
    list_names = await fetch_list_names(client, board)
    per_list = await asyncio.gather(
        *(_cards_on_list(client, list_id, name) for list_id, name in list_names.items())
    )
    cards = [card for batch in per_list for card in batch]
    return partition_cards(cards, list_names, board.label_strategy)


# ---------------------------------------------------------------------------
# Cross-board lookup
# ---------------------------------------------------------------------------


class BoardListCache:
    """Per-run memo of {list_id: name} per board, shared by concurrent lookups."""

    def __init__(self, client):
        self._client = client
        self._pending = {}

    async def names(self, board):
        task = self._pending.get(board.id)
        if task is None:
            task = asyncio.ensure_future(fetch_list_names(self._client, board))
            self._pending[board.id] = task
        return await task


async def lookup_card(client, settings, card_id, list_cache=None):
    """Resolve a card on the sprint board, falling back to the release board.

    Returns a CardRecord, or None when neither board has the card.
    Transport and auth failures propagate.
    """
    list_cache = list_cache or BoardListCache(client)
    boards = [settings.sprint_board]
    if settings.release_board is not None:
        boards.append(settings.release_board)
    for board in boards:
        result = await client.get_card(board.id, card_id)
        if isinstance(result, CardFound):
            return normalize_card(result.card, await list_cache.names(board))
    return None


# ---------------------------------------------------------------------------
# Sprint label
# ---------------------------------------------------------------------------


async def add_sprint_label(client, board):
    """Attach the board's sprint label to every card on its active lists."""
    label = board.sprint_label
    partition = await fetch_cards(client, board)
    targets = [
        card
        for card in partition.all
        if label.name not in {lbl.get("name") for lbl in card.get("labels") or []}
    ]
    skipped = len(partition.all) - len(targets)
    if config.RUNTIME_DRY_RUN:
        return {
            "dry_run": True,
            "label": label.name,
            "would_label": [card.get("id") for card in targets],
            "skipped": skipped,
        }
    results = await asyncio.gather(
        *(client.add_label(card["id"], label.id) for card in targets),
        return_exceptions=True,
    )
    failed = []
    for card, outcome in zip(targets, results):
        if isinstance(outcome, Exception):
            _warn(f"Could not label card {card.get('id')}: {outcome}")
            failed.append(card.get("id"))
    return {
        "label": label.name,
        "labelled": len(targets) - len(failed),
        "skipped": skipped,
        "failed": failed,
    }
