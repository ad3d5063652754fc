"""
trello-sheets-cli shared configuration, constants, and module-level state.
"""

import json
import os
import tempfile

from trello_sheets.exceptions import CliError, SetupError  # noqa: F401 (re-export)
from trello_sheets.models import Settings

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")

# Keys that may also come from the process environment (containers, CI).
KNOWN_ENV_KEYS = (
    "TRELLO_API_KEY",
    "TRELLO_API_TOKEN",
    "GOOGLE_SPREADSHEET_ID",
    "GOOGLE_PRIVATE_KEY_FILE_PATH",
    "TRELLO_SHEETS_CONFIG",
    "TRELLO_HTTP_TIMEOUT_SECONDS",
    "TRELLO_HTTP_MAX_RESPONSE_BYTES",
    "TRELLO_HTTP_LOG",
    "TRELLO_HTTP_LOG_SAMPLE_RATE",
)


def load_env():
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    for key in KNOWN_ENV_KEYS:
        if key not in env and os.environ.get(key):
            env[key] = os.environ[key]
    return env


def _atomic_write(path, text, mode=0o600):
    """Write *text* to a temp file beside *path*, then rename over it."""
    target_dir = os.path.dirname(path) or "."
    os.makedirs(target_dir, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=target_dir, prefix=".tmp_")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise
    # Owner-only on Unix/Mac. No-op on Windows.
    try:
        os.chmod(path, mode)
    except (OSError, NotImplementedError):
        pass


def save_env_value(key, value):
    """Update or add a key in the .env file (atomic write-then-rename)."""
    lines = []
    found = False
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            lines = f.readlines()
    for i, line in enumerate(lines):
        if line.strip().startswith(f"{key}="):
            lines[i] = f"{key}={value}\n"
            found = True
            break
    if not found:
        lines.append(f"{key}={value}\n")
    _atomic_write(ENV_PATH, "".join(lines))


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.3.0"

VALID_OPERATIONS = (
    "get",
    "clear",
    "createBacklog",
    "addToUnplanned",
    "updateSheet",
    "addSprintLabel",
)
VALID_SHEETS = ("backlog", "unplanned")

TRELLO_BASE_URL = "https://api.trello.com/1"

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/spreadsheets",
]

DEFAULT_SETTINGS_PATH = os.path.join(_PROJECT_ROOT, "config", "default.json")

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env)
# ---------------------------------------------------------------------------

env = load_env()

TRELLO_API_KEY = env.get("TRELLO_API_KEY", "")
TRELLO_API_TOKEN = env.get("TRELLO_API_TOKEN", "")
SPREADSHEET_ID = env.get("GOOGLE_SPREADSHEET_ID", "")
GOOGLE_PRIVATE_KEY_FILE_PATH = env.get("GOOGLE_PRIVATE_KEY_FILE_PATH", "")
SETTINGS_PATH = env.get("TRELLO_SHEETS_CONFIG", "") or DEFAULT_SETTINGS_PATH
HTTP_TIMEOUT_SECONDS = _env_int("TRELLO_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RESPONSE_BYTES = _env_int("TRELLO_HTTP_MAX_RESPONSE_BYTES", 5_000_000)
HTTP_LOG_ENABLED = _env_bool("TRELLO_HTTP_LOG", False)
HTTP_LOG_SAMPLE_RATE = min(1.0, max(0.0, _env_float("TRELLO_HTTP_LOG_SAMPLE_RATE", 1.0)))

RUNTIME_DRY_RUN = False
RUNTIME_QUIET = False
RUNTIME_VERBOSE = False

# ---------------------------------------------------------------------------
# Board/sheet settings (JSON file)
# ---------------------------------------------------------------------------


def load_settings(path=None):
    """Read the board/sheet JSON config and return a validated Settings."""
    path = path or SETTINGS_PATH
    if not os.path.exists(path):
        raise SetupError(
            f"[SETUP_NEEDED] Board config not found at {path}.\n"
            "  Run: trello-sheets setup"
        )
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise SetupError(
            f"[SETUP_NEEDED] Board config {path} is not valid JSON: {e.msg} (line {e.lineno})."
        ) from None
    return Settings.from_value(raw)


def save_settings(data, path=None):
    """Write a board/sheet config dict as pretty JSON."""
    path = path or SETTINGS_PATH
    _atomic_write(path, json.dumps(data, indent=2) + "\n", mode=0o644)
    return path


_REQUIRED_ENV = {
    "TRELLO_API_KEY": (
        "TRELLO_API_KEY",
        "your Trello API key (https://trello.com/app-key)",
    ),
    "TRELLO_API_TOKEN": ("TRELLO_API_TOKEN", "your Trello API token"),
    "SPREADSHEET_ID": (
        "GOOGLE_SPREADSHEET_ID",
        "the id of the spreadsheet that tracks the sprint",
    ),
    "GOOGLE_PRIVATE_KEY_FILE_PATH": (
        "GOOGLE_PRIVATE_KEY_FILE_PATH",
        "path to the service account JSON key file",
    ),
}


def require_settings(needs_sheets=True, needs_trello=True):
    """Fail fast with every missing key named. Returns loaded Settings."""
    wanted = []
    if needs_trello:
        wanted += ["TRELLO_API_KEY", "TRELLO_API_TOKEN"]
    if needs_sheets:
        wanted += ["SPREADSHEET_ID", "GOOGLE_PRIVATE_KEY_FILE_PATH"]
    missing = [_REQUIRED_ENV[attr] for attr in wanted if not globals().get(attr)]
    if missing:
        lines = [f"  {key}: {hint}" for key, hint in missing]
        raise SetupError(
            "[SETUP_NEEDED] Missing required settings:\n"
            + "\n".join(lines)
            + "\n  Add them to .env or run: trello-sheets setup"
        )
    return load_settings()

