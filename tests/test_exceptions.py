"""Tests for exceptions.py: hierarchy and exit codes."""

from trello_sheets.exceptions import CliError, HTTPError, SetupError, SheetNotEmptyError


class TestExitCodes:
    def test_cli_error(self):
        assert CliError("x").exit_code == 1

    def test_setup_error_is_cli_error(self):
        err = SetupError("x")
        assert isinstance(err, CliError)
        assert err.exit_code == 2

    def test_sheet_not_empty_is_cli_error(self):
        assert SheetNotEmptyError("x").exit_code == 1


class TestHTTPError:
    def test_attributes(self):
        err = HTTPError(404, "Not Found", "missing", {"X-Request-Id": "r"})
        assert (err.code, err.reason, err.body) == (404, "Not Found", "missing")
        assert err.headers["X-Request-Id"] == "r"

    def test_headers_default(self):
        assert HTTPError(500, "x", "").headers == {}
