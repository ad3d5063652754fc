"""Tests for setup_wizard.py prompt and save flows."""

from unittest.mock import patch

from trello_sheets import config, setup_wizard
from trello_sheets.models import Settings
from trello_sheets.setup_wizard import PROMPTS, Prompt, _ask, answers_to_config

ANSWERS = {
    "sprint.board.id": "sprintBoard",
    "sprint.board.listToExclude": "Backlog",
    "sprint.label.id": "lbl1",
    "sprint.label.name": "Planned",
    "unplanned.label.name": "",
    "unplanned.label.id": "",
    "release.board.id": "",
    "release.board.listToExclude": "",
    "sheets.backlog.name": "SprintBacklog",
    "sheets.backlog.range": "!A2:Z",
    "sheets.unplanned.name": "Unplanned",
    "sheets.unplanned.range": "!A3:Z",
}


class TestAsk:
    @patch("builtins.input", side_effect=["bad id!", "abc123"])
    def test_reprompts_on_invalid_value(self, mock_input, capsys):
        prompt = Prompt("k", "Board id", r"^[a-z0-9]+$", "Must be alphanumeric.")
        assert _ask(prompt) == "abc123"
        assert "Must be alphanumeric." in capsys.readouterr().out
        assert mock_input.call_count == 2

    @patch("builtins.input", return_value="")
    def test_empty_takes_default(self, mock_input):
        assert _ask(Prompt("k", "Range", default="!A2:Z")) == "!A2:Z"

    @patch("builtins.input", side_effect=["", "x"])
    def test_required_value(self, mock_input, capsys):
        assert _ask(Prompt("k", "Id", required=True)) == "x"
        assert "A value is required." in capsys.readouterr().out

    @patch("builtins.input", return_value="")
    def test_optional_empty(self, mock_input):
        assert _ask(Prompt("k", "Label")) == ""


class TestAnswersToConfig:
    def test_minimal_answers_parse(self):
        settings = Settings.from_value(answers_to_config(ANSWERS))
        assert settings.release_board is None
        assert settings.sprint_board.list_to_exclude == frozenset({"Backlog"})
        assert settings.sprint_board.unplanned_label is None
        assert settings.sheet("unplanned").range == "!A3:Z"

    def test_unplanned_label_and_release_board(self):
        answers = {
            **ANSWERS,
            "unplanned.label.name": "Unplanned",
            "unplanned.label.id": "lbl2",
            "release.board.id": "rel",
            "release.board.listToExclude": "Done",
        }
        settings = Settings.from_value(answers_to_config(answers))
        assert settings.sprint_board.unplanned_label.id == "lbl2"
        assert settings.release_board.list_to_exclude == frozenset({"Done"})

    def test_every_prompt_feeds_the_config(self):
        assert {p.key for p in PROMPTS} == set(ANSWERS)


class TestSetupFlows:
    def test_board_config_saved(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "SETTINGS_PATH", str(tmp_path / "default.json"))
        with patch("trello_sheets.setup_wizard._ask", side_effect=lambda p: ANSWERS[p.key]):
            setup_wizard._setup_board_config()
        assert config.load_settings().sprint_board.id == "sprintBoard"

    @patch("trello_sheets.setup_wizard.config.save_env_value")
    @patch("trello_sheets.setup_wizard.config.load_env", return_value={})
    @patch("builtins.input", return_value="")
    def test_credentials_kept_when_blank(self, mock_input, mock_env, mock_save):
        setup_wizard._setup_credentials()
        mock_save.assert_not_called()

    @patch("trello_sheets.setup_wizard.config.save_env_value")
    @patch(
        "trello_sheets.setup_wizard.config.load_env",
        return_value={"TRELLO_API_KEY": "abcdef123456"},
    )
    @patch("builtins.input", side_effect=["", '"tok"', "", ""])
    def test_credentials_saved_and_masked(self, mock_input, mock_env, mock_save):
        setup_wizard._setup_credentials()
        mock_save.assert_called_once_with("TRELLO_API_TOKEN", "tok")
        assert "[abcdef...]" in mock_input.call_args_list[0].args[0]
        assert "123456" not in mock_input.call_args_list[0].args[0]
