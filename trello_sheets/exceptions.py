"""
trello-sheets-cli exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""


class CliError(Exception):
    """Exit code 1: validation, network, parse errors."""

    exit_code = 1


class SetupError(CliError):
    """Exit code 2: missing configuration, rejected credentials."""

    exit_code = 2


class SheetNotEmptyError(CliError):
    """Raised when populating a sheet view that already holds rows."""


class HTTPError(Exception):
    """Raised by _http_request for HTTP errors that callers want to handle."""

    def __init__(self, code, reason, body, headers=None):
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}
