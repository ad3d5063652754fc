"""
trello-sheets-cli: keep a sprint spreadsheet in sync with a Trello board
"""

import argparse
import json
import sys

from trello_sheets import config
from trello_sheets.commands import OPERATIONS
from trello_sheets.exceptions import CliError
from trello_sheets.setup_wizard import cmd_setup

HELP_TEXT = """\
Usage: trello-sheets --operation <name> [--sheet backlog|unplanned] [flags]
       trello-sheets setup

Integrate a Trello board and a Google spreadsheet for running a sprint.

Options:
  -o, --operation <name>  Operation to perform on the spreadsheet:
      get                   Print the rows of a sheet view (uses --sheet)
      clear                 Clear the rows of a sheet view (uses --sheet)
      createBacklog         Write the sprint's planned cards to the backlog
                            view (run once at the start of each sprint)
      addToUnplanned        Append unplanned cards added during the sprint
                            that the unplanned view does not list yet
      updateSheet           Re-read every card listed in a view from Trello
                            and refresh its row (uses --sheet)
      addSprintLabel        Add the sprint label to every card on the sprint
                            board (run at the start of the sprint)
  -s, --sheet <name>      Sheet view: backlog or unplanned (default: backlog)

Global flags:
  --format table          Output as readable text instead of JSON (default: json)
  --dry-run               Compute writes and print them without sending them
  --quiet, -q             Suppress warnings
  --verbose, -v           Enable HTTP request logging
  --version               Show version number
  -h, --help              Show this help

Commands:
  setup                   Interactive wizard that writes the board config
"""


# ---------------------------------------------------------------------------
# Global flag extraction (before argparse, so flags work in any position)
# ---------------------------------------------------------------------------


def _extract_global_flags(argv):
    """Extract global flags from argv regardless of position.

    Returns (format_str, dry_run, quiet, verbose, remaining_argv).
    Handles --version directly.
    """
    fmt = "json"
    dry_run = False
    quiet = False
    verbose = False
    remaining = []
    i = 0
    while i < len(argv):
        if argv[i] == "--version":
            print(f"trello-sheets-cli {config.VERSION}")
            sys.exit(0)
        elif argv[i] == "--dry-run":
            dry_run = True
        elif argv[i] in ("--quiet", "-q"):
            quiet = True
        elif argv[i] in ("--verbose", "-v"):
            verbose = True
        elif argv[i] == "--format" and i + 1 < len(argv):
            fmt = argv[i + 1]
            if fmt not in ("json", "table"):
                raise CliError(f"[ERROR] Invalid format '{fmt}'. Use: json, table")
            i += 2
            continue
        else:
            remaining.append(argv[i])
        i += 1
    if quiet and verbose:
        raise CliError("[ERROR] --quiet and --verbose are mutually exclusive.")
    return fmt, dry_run, quiet, verbose, remaining


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _OperationParser(argparse.ArgumentParser):
    """Parser that raises CliError instead of printing full help text."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


def _choice(valid, what):
    def parse(value):
        if value not in valid:
            raise argparse.ArgumentTypeError(
                f"invalid {what} '{value}'. Allowed: {', '.join(valid)}"
            )
        return value

    return parse


def build_parser():
    parser = _OperationParser(prog="trello-sheets", add_help=False)
    parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    parser.add_argument(
        "--operation", "-o", type=_choice(config.VALID_OPERATIONS, "operation")
    )
    parser.add_argument(
        "--sheet", "-s", type=_choice(config.VALID_SHEETS, "sheet name"), default="backlog"
    )
    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


def _error_type_from_message(message):
    if message.startswith("[TOKEN_EXPIRED]"):
        return "token_expired"
    if message.startswith("[SETUP_NEEDED]"):
        return "setup_needed"
    if message.startswith("[REFUSED]"):
        return "refused"
    if message.startswith("[ERROR]"):
        return "error"
    return "cli_error"


def _emit_cli_error(err, fmt):
    msg = str(err)
    if fmt == "json":
        payload = {
            "ok": False,
            "error": {
                "type": _error_type_from_message(msg),
                "message": msg,
                "exit_code": getattr(err, "exit_code", 1),
            },
        }
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return
    print(msg, file=sys.stderr)


def main(argv=None):
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    argv = sys.argv[1:] if argv is None else argv
    fmt = "json"
    try:
        fmt, dry_run, quiet, verbose, remaining_argv = _extract_global_flags(argv)
        config.RUNTIME_DRY_RUN = dry_run
        config.RUNTIME_QUIET = quiet
        config.RUNTIME_VERBOSE = verbose
        if verbose:
            config.HTTP_LOG_ENABLED = True

        if remaining_argv[:1] == ["setup"]:
            cmd_setup()
            sys.exit(0)

        ns = build_parser().parse_args(remaining_argv)
        ns.format = fmt

        if ns.show_help:
            print(HELP_TEXT)
            sys.exit(0)

        if not ns.operation:
            print("No operation provided! Usage: trello-sheets --operation <name>")
            print(f"Operations allowed: {'|'.join(config.VALID_OPERATIONS)}")
            sys.exit(0)

        OPERATIONS[ns.operation](ns)

    except CliError as e:
        _emit_cli_error(e, fmt)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
