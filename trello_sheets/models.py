"""
Typed models for board configuration, card records, and lookup results.
"""

import re
from dataclasses import dataclass, field

from trello_sheets.exceptions import SetupError

PLANNED = "planned"
UNPLANNED = "unplanned"

_ROW_NUMBER_RE = re.compile(r"\d+")


def _card_label_names(card) -> set[str]:
    return {label.get("name") for label in card.get("labels") or [] if label.get("name")}


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Label:
    """A board label identified by id (for attaching) and name (for matching)."""

    id: str
    name: str

    @classmethod
    def from_value(cls, value, context):
        if value is None:
            return None
        if not isinstance(value, dict) or not value.get("name"):
            raise SetupError(f"[SETUP_NEEDED] Label '{context}' needs at least a name.")
        return cls(id=str(value.get("id") or ""), name=str(value["name"]))


@dataclass(frozen=True)
class ExplicitUnplannedLabel:
    """Cards carry either the sprint label or a dedicated unplanned label."""

    sprint: Label
    unplanned: Label

    def classify(self, card) -> str | None:
        names = _card_label_names(card)
        if self.sprint.name in names:
            return PLANNED
        if self.unplanned.name in names:
            return UNPLANNED
        return None


@dataclass(frozen=True)
class ImplicitUnplannedByAbsence:
    """Any card without the sprint label counts as unplanned."""

    sprint: Label

    def classify(self, card) -> str | None:
        if self.sprint.name in _card_label_names(card):
            return PLANNED
        return UNPLANNED


def select_label_strategy(
    sprint_label: Label | None, unplanned_label: Label | None
) -> ExplicitUnplannedLabel | ImplicitUnplannedByAbsence | None:
    """Pick the partitioning strategy from the shape of the label config."""
    if sprint_label is None:
        return None
    if unplanned_label is None:
        return ImplicitUnplannedByAbsence(sprint=sprint_label)
    return ExplicitUnplannedLabel(sprint=sprint_label, unplanned=unplanned_label)


@dataclass(frozen=True)
class BoardConfig:
    id: str
    list_to_exclude: frozenset = field(default_factory=frozenset)
    sprint_label: Label | None = None
    unplanned_label: Label | None = None

    @property
    def label_strategy(self) -> ExplicitUnplannedLabel | ImplicitUnplannedByAbsence | None:
        return select_label_strategy(self.sprint_label, self.unplanned_label)

    @classmethod
    def from_value(cls, value, context):
        if not isinstance(value, dict) or not value.get("id"):
            raise SetupError(f"[SETUP_NEEDED] Board '{context}' needs an id.")
        raw_exclude = value.get("listToExclude") or ""
        excluded = frozenset(name.strip() for name in raw_exclude.split(",") if name.strip())
        return cls(
            id=str(value["id"]),
            list_to_exclude=excluded,
            sprint_label=Label.from_value(value.get("sprintLabel"), f"{context}.sprintLabel"),
            unplanned_label=Label.from_value(
                value.get("unplannedLabel"), f"{context}.unplannedLabel"
            ),
        )


@dataclass(frozen=True)
class SheetView:
    """A named sheet plus the A1 range template holding its data rows."""

    name: str
    range: str

    @property
    def ref(self) -> str:
        return self.name + self.range

    @property
    def start_row(self) -> int:
        match = _ROW_NUMBER_RE.search(self.range)
        return int(match.group(0)) if match else 2

    def row_ref(self, row_number: int, last_column: str = "H") -> str:
        return f"{self.name}!A{row_number}:{last_column}{row_number}"

    def anchor_ref(self) -> str:
        return f"{self.name}!A{self.start_row}"

    @classmethod
    def from_value(cls, value, context):
        if not isinstance(value, dict) or not value.get("name") or not value.get("range"):
            raise SetupError(f"[SETUP_NEEDED] Sheet '{context}' needs a name and a range.")
        return cls(name=str(value["name"]), range=str(value["range"]))


@dataclass(frozen=True)
class Settings:
    sprint_board: BoardConfig
    release_board: BoardConfig | None
    sheets: dict

    def sheet(self, name: str) -> SheetView:
        try:
            return self.sheets[name]
        except KeyError:
            raise SetupError(
                f"[SETUP_NEEDED] Sheet view '{name}' is not configured. "
                f"Configured: {', '.join(sorted(self.sheets)) or '(none)'}"
            ) from None

    @classmethod
    def from_value(cls, value):
        if not isinstance(value, dict):
            raise SetupError("[SETUP_NEEDED] Board config must be a JSON object.")
        boards = (value.get("trello") or {}).get("board") or {}
        release = boards.get("release")
        sheets = ((value.get("googlesheet") or {}).get("sheets")) or {}
        return cls(
            sprint_board=BoardConfig.from_value(boards.get("sprint"), "sprint"),
            release_board=(
                BoardConfig.from_value(release, "release")
                if isinstance(release, dict) and release.get("id")
                else None
            ),
            sheets={name: SheetView.from_value(view, name) for name, view in sheets.items()},
        )


# ---------------------------------------------------------------------------
# Card records
# ---------------------------------------------------------------------------

SHEET_COLUMNS = ("name", "identifier", "url", "estimate", "consumed", "member", "status", "due")


@dataclass(frozen=True)
class CardMeta:
    estimate: float | None = None
    consumed: float | None = None
    member: str = ""


@dataclass(frozen=True)
class CardRecord:
    """Flat card view stored as one sheet row."""

    name: str
    identifier: str
    url: str
    estimate: float | None
    consumed: float | None
    member: str
    status: str
    due: str | None

    def to_row(self) -> list:
        row = []
        for column in SHEET_COLUMNS:
            value = getattr(self, column)
            if value is None:
                row.append("")
            elif isinstance(value, float) and value.is_integer():
                row.append(int(value))
            else:
                row.append(value)
        return row


@dataclass
class Partition:
    """Cards fetched from one board, with planned/unplanned records."""

    all: list = field(default_factory=list)
    planned: list = field(default_factory=list)
    unplanned: list = field(default_factory=list)


# ---------------------------------------------------------------------------
# Lookup results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CardFound:
    card: dict


@dataclass(frozen=True)
class CardNotFound:
    card_id: str
