"""
Interactive setup wizard for trello-sheets-cli.
Writes the board/sheet JSON config and, optionally, credentials to .env.
"""

import os
import re
from dataclasses import dataclass

from trello_sheets import config
from trello_sheets.api import _mask_token

_ALNUM = r"^[a-zA-Z0-9]+$"
_NAME_LIST = r"^[A-Za-z0-9 ]+(?:, ?[A-Za-z0-9 ]+)*$"
_RANGE = r"^![A-Z]\d+(?::[A-Z]\d*)$"


@dataclass(frozen=True)
class Prompt:
    key: str
    description: str
    pattern: str | None = None
    message: str = ""
    default: str | None = None
    required: bool = False


PROMPTS = (
    Prompt(
        "sprint.board.id",
        "Trello board id used for the sprint",
        _ALNUM,
        "Must be alphanumeric.",
        required=True,
    ),
    Prompt(
        "sprint.board.listToExclude",
        "Comma separated names of sprint board lists to skip when fetching cards",
        _NAME_LIST,
        "Comma separated list of names.",
        default="Backlog",
    ),
    Prompt(
        "sprint.label.id",
        "Id of the label used for cards in the current sprint",
        _ALNUM,
        "Must be alphanumeric.",
        required=True,
    ),
    Prompt(
        "sprint.label.name",
        "Name of the label used for cards in the current sprint",
        _ALNUM,
        "Must be alphanumeric.",
        default="Planned",
        required=True,
    ),
    Prompt(
        "unplanned.label.name",
        "Name of the label for cards added mid-sprint (empty: any card without the sprint label)",
        _ALNUM,
        "Must be alphanumeric.",
    ),
    Prompt(
        "unplanned.label.id",
        "Id of the unplanned label (optional)",
        _ALNUM,
        "Must be alphanumeric.",
    ),
    Prompt(
        "release.board.id",
        "Trello board id used for releases (a separate board holding completed sprint cards)",
        _ALNUM,
        "Must be alphanumeric.",
    ),
    Prompt(
        "release.board.listToExclude",
        "Comma separated names of release board lists to skip",
        _NAME_LIST,
        "Comma separated list of names.",
    ),
    Prompt(
        "sheets.backlog.name",
        "Sheet name used for the current sprint backlog",
        _ALNUM,
        "Must be alphanumeric.",
        default="SprintBacklog",
    ),
    Prompt(
        "sheets.backlog.range",
        "Range of backlog data rows",
        _RANGE,
        "Use A1 notation like !A2:Z.",
        default="!A2:Z",
    ),
    Prompt(
        "sheets.unplanned.name",
        "Sheet name used for unplanned cards added during the sprint",
        _ALNUM,
        "Must be alphanumeric.",
        default="Unplanned",
    ),
    Prompt(
        "sheets.unplanned.range",
        "Range of unplanned data rows",
        _RANGE,
        "Use A1 notation like !A3:Z.",
        default="!A3:Z",
    ),
)


def _ask(prompt):
    """Ask until the answer is valid. Empty answers take the default."""
    default = prompt.default
    suffix = f" [{default}]" if default else ""
    while True:
        answer = input(f"  {prompt.description}{suffix}: ").strip()
        if not answer:
            answer = default or ""
        if not answer:
            if prompt.required:
                print("    A value is required.")
                continue
            return ""
        if prompt.pattern and not re.match(prompt.pattern, answer):
            print(f"    {prompt.message}")
            continue
        return answer


def _label(label_id, name):
    if not name:
        return None
    return {"id": label_id, "name": name}


def answers_to_config(answers):
    """Build the board/sheet JSON config from prompt answers."""
    sprint = {
        "id": answers["sprint.board.id"],
        "listToExclude": answers.get("sprint.board.listToExclude", ""),
        "sprintLabel": _label(answers["sprint.label.id"], answers["sprint.label.name"]),
    }
    unplanned = _label(answers.get("unplanned.label.id", ""), answers.get("unplanned.label.name"))
    if unplanned:
        sprint["unplannedLabel"] = unplanned
    boards = {"sprint": sprint}
    if answers.get("release.board.id"):
        boards["release"] = {
            "id": answers["release.board.id"],
            "listToExclude": answers.get("release.board.listToExclude", ""),
        }
    return {
        "trello": {"board": boards},
        "googlesheet": {
            "sheets": {
                view: {
                    "name": answers[f"sheets.{view}.name"],
                    "range": answers[f"sheets.{view}.range"],
                }
                for view in config.VALID_SHEETS
            }
        },
    }


def _setup_board_config():
    print("Board and sheet configuration")
    print("-" * 40)
    answers = {}
    for prompt in PROMPTS:
        answers[prompt.key] = _ask(prompt)
    path = config.save_settings(answers_to_config(answers))
    print(f"  The config file was saved to {path}\n")


def _setup_credentials():
    """Offer to store Trello and Google credentials in .env."""
    print("Credentials (.env)")
    print("-" * 40)
    fields = (
        ("TRELLO_API_KEY", "Trello API key"),
        ("TRELLO_API_TOKEN", "Trello API token"),
        ("GOOGLE_SPREADSHEET_ID", "Google spreadsheet id"),
        ("GOOGLE_PRIVATE_KEY_FILE_PATH", "Path to the service account JSON key"),
    )
    current = config.load_env()
    for key, label in fields:
        existing = current.get(key, "")
        shown = f" [{_mask_token(existing)}]" if existing else ""
        value = input(f"  {label}{shown} (Enter to keep): ").strip().strip('"').strip("'")
        if not value:
            continue
        if key == "GOOGLE_PRIVATE_KEY_FILE_PATH" and not os.path.exists(value):
            print(f"    Warning: {value} does not exist yet.")
        config.save_env_value(key, value)
        print(f"    Saved: {key}")
    print()


def cmd_setup():
    print("=" * 56)
    print("  trello-sheets-cli setup")
    print("=" * 56)
    print()
    _setup_board_config()
    _setup_credentials()
    print("Setup complete. Try: trello-sheets --operation get --sheet backlog")
