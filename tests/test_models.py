"""Tests for models.py: config parsing, label strategies, sheet refs, records."""

import pytest
from conftest import SETTINGS_JSON, make_card

from trello_sheets.exceptions import SetupError
from trello_sheets.models import (
    PLANNED,
    UNPLANNED,
    BoardConfig,
    CardRecord,
    ExplicitUnplannedLabel,
    ImplicitUnplannedByAbsence,
    Label,
    Settings,
    SheetView,
    select_label_strategy,
)

SPRINT = Label(id="s", name="Planned")
EXTRA = Label(id="u", name="Unplanned")


class TestLabelStrategy:
    def test_no_sprint_label(self):
        assert select_label_strategy(None, EXTRA) is None

    def test_implicit_when_no_unplanned_label(self):
        assert select_label_strategy(SPRINT, None) == ImplicitUnplannedByAbsence(sprint=SPRINT)

    def test_explicit_when_both(self):
        strategy = select_label_strategy(SPRINT, EXTRA)
        assert strategy == ExplicitUnplannedLabel(sprint=SPRINT, unplanned=EXTRA)

    @pytest.mark.parametrize(
        "labels,expected",
        [
            (("Planned",), PLANNED),
            (("Unplanned",), UNPLANNED),
            (("Planned", "Unplanned"), PLANNED),
            ((), None),
            (("Bug",), None),
        ],
    )
    def test_explicit_classify(self, labels, expected):
        strategy = ExplicitUnplannedLabel(sprint=SPRINT, unplanned=EXTRA)
        assert strategy.classify(make_card("c", labels=labels)) == expected

    @pytest.mark.parametrize(
        "labels,expected",
        [(("Planned",), PLANNED), ((), UNPLANNED), (("Bug",), UNPLANNED)],
    )
    def test_implicit_classify(self, labels, expected):
        strategy = ImplicitUnplannedByAbsence(sprint=SPRINT)
        assert strategy.classify(make_card("c", labels=labels)) == expected

    def test_match_is_by_name(self):
        card = make_card("c")
        card["labels"] = [{"id": "other-id", "name": "Planned"}]
        assert ImplicitUnplannedByAbsence(sprint=SPRINT).classify(card) == PLANNED


class TestBoardConfig:
    def test_list_to_exclude_split_and_trimmed(self):
        board = BoardConfig.from_value({"id": "b", "listToExclude": "Backlog, Icebox ,"}, "sprint")
        assert board.list_to_exclude == frozenset({"Backlog", "Icebox"})

    def test_missing_exclude(self):
        assert BoardConfig.from_value({"id": "b"}, "sprint").list_to_exclude == frozenset()

    def test_missing_id(self):
        with pytest.raises(SetupError, match="needs an id"):
            BoardConfig.from_value({"listToExclude": "x"}, "sprint")

    def test_label_without_name(self):
        with pytest.raises(SetupError, match="sprint.sprintLabel"):
            BoardConfig.from_value({"id": "b", "sprintLabel": {"id": "x"}}, "sprint")

    def test_label_strategy_from_labels(self):
        board = BoardConfig.from_value(
            {"id": "b", "sprintLabel": {"id": "x", "name": "Planned"}}, "sprint"
        )
        assert isinstance(board.label_strategy, ImplicitUnplannedByAbsence)


class TestSheetView:
    def test_ref(self):
        assert SheetView("SprintBacklog", "!A2:Z").ref == "SprintBacklog!A2:Z"

    @pytest.mark.parametrize("rng,row", [("!A2:Z", 2), ("!A3:Z", 3), ("!B10:H", 10), ("!A:Z", 2)])
    def test_start_row(self, rng, row):
        assert SheetView("S", rng).start_row == row

    def test_anchor_and_row_refs(self):
        view = SheetView("Unplanned", "!A3:Z")
        assert view.anchor_ref() == "Unplanned!A3"
        assert view.row_ref(7) == "Unplanned!A7:H7"


class TestSettings:
    def test_full_config(self):
        settings = Settings.from_value(SETTINGS_JSON)
        assert settings.sprint_board.id == "sprintBoard"
        assert settings.release_board.id == "releaseBoard"
        assert settings.sheet("backlog") == SheetView("SprintBacklog", "!A2:Z")

    def test_release_board_optional(self):
        data = {"trello": {"board": {"sprint": {"id": "b"}}}, "googlesheet": {"sheets": {}}}
        assert Settings.from_value(data).release_board is None

    def test_sprint_board_required(self):
        with pytest.raises(SetupError):
            Settings.from_value({"trello": {"board": {}}})

    def test_not_an_object(self):
        with pytest.raises(SetupError, match="JSON object"):
            Settings.from_value([])

    def test_unknown_sheet_lists_configured(self, settings):
        with pytest.raises(SetupError) as exc_info:
            settings.sheet("sprint")
        assert "backlog, unplanned" in str(exc_info.value)

    def test_sheet_needs_range(self):
        data = {
            "trello": {"board": {"sprint": {"id": "b"}}},
            "googlesheet": {"sheets": {"backlog": {"name": "B"}}},
        }
        with pytest.raises(SetupError, match="'backlog'"):
            Settings.from_value(data)


class TestCardRecord:
    def test_to_row_layout(self):
        record = CardRecord("(3) ann/Task [1.5]", "c1", "u", 3.0, 1.5, "ann", "Doing", "2026-03-01")
        row = record.to_row()
        assert row == ["(3) ann/Task [1.5]", "c1", "u", 3, 1.5, "ann", "Doing", "2026-03-01"]

    def test_absent_values_are_blank(self):
        record = CardRecord("Task", "c1", "u", None, None, "", "", None)
        assert record.to_row() == ["Task", "c1", "u", "", "", "", "", ""]
