"""
Google Sheets access for trello-sheets-cli.

Thin async facade over the blocking google-api-python-client. Each call runs
in a worker thread so board fetches can overlap with sheet reads.
"""

import asyncio
import json

import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from trello_sheets import config
from trello_sheets.api import _sanitize_error
from trello_sheets.exceptions import CliError, SetupError

VALUE_INPUT_OPTION = "USER_ENTERED"


def load_credentials(path=None):
    """Load service account credentials from the JSON key file."""
    path = path or config.GOOGLE_PRIVATE_KEY_FILE_PATH
    try:
        with open(path, encoding="utf-8") as f:
            info = json.load(f)
    except FileNotFoundError:
        raise SetupError(
            f"[SETUP_NEEDED] Google key file not found: {path}. "
            "Set GOOGLE_PRIVATE_KEY_FILE_PATH to your service account JSON key."
        ) from None
    except json.JSONDecodeError as e:
        raise SetupError(
            f"[SETUP_NEEDED] Google key file {path} is not valid JSON: {e.msg}."
        ) from None
    try:
        return service_account.Credentials.from_service_account_info(
            info, scopes=config.GOOGLE_SCOPES
        )
    except (ValueError, KeyError) as e:
        raise SetupError(f"[SETUP_NEEDED] Google key file {path} is incomplete: {e}") from None


def build_service(credentials):
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def _translate_http_error(err, operation):
    status = getattr(getattr(err, "resp", None), "status", None)
    detail = ""
    content = getattr(err, "content", b"")
    if content:
        detail = _sanitize_error(content.decode("utf-8", errors="replace"))
    if status in (401, 403):
        return SetupError(
            f"[TOKEN_EXPIRED] Google rejected the service account while trying to {operation} "
            f"(status={status}). Share the spreadsheet with the service account email."
        )
    message = f"[ERROR] Google Sheets {operation} failed (status={status})"
    if detail:
        message += f"\n{detail}"
    return CliError(message)


class SheetsClient:
    """Values API wrapper bound to one spreadsheet."""

    def __init__(self, service=None, spreadsheet_id=None):
        self._service = service
        self.spreadsheet_id = spreadsheet_id or config.SPREADSHEET_ID

    @property
    def service(self):
        if self._service is None:
            self._service = build_service(load_credentials())
        return self._service

    def _values(self):
        return self.service.spreadsheets().values()

    async def _execute(self, request, operation):
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            raise _translate_http_error(e, operation) from e
        except RefreshError as e:
            raise SetupError(
                "[TOKEN_EXPIRED] Google refused the service account credentials during "
                f"{operation}: {e}. Check GOOGLE_PRIVATE_KEY_FILE_PATH."
            ) from e
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            raise CliError(
                f"[ERROR] Google Sheets {operation} failed: {e}. Is the Sheets API reachable?"
            ) from e

    async def read_range(self, ref):
        """Rows in *ref* (list of lists); an empty range gives []."""
        request = self._values().get(spreadsheetId=self.spreadsheet_id, range=ref)
        result = await self._execute(request, f"read of {ref}")
        return result.get("values") or []

    async def write_range(self, ref, rows):
        request = self._values().update(
            spreadsheetId=self.spreadsheet_id,
            range=ref,
            valueInputOption=VALUE_INPUT_OPTION,
            body={"majorDimension": "ROWS", "values": rows},
        )
        return await self._execute(request, f"write to {ref}")

    async def append_rows(self, ref, rows):
        request = self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=ref,
            valueInputOption=VALUE_INPUT_OPTION,
            insertDataOption="INSERT_ROWS",
            body={"majorDimension": "ROWS", "values": rows},
        )
        return await self._execute(request, f"append to {ref}")

    async def clear_range(self, ref):
        request = self._values().clear(spreadsheetId=self.spreadsheet_id, range=ref, body={})
        return await self._execute(request, f"clear of {ref}")

    async def batch_update(self, updates):
        """Write several ranges in one call. updates: [{"range", "values"}, ...]."""
        request = self._values().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={
                "valueInputOption": VALUE_INPUT_OPTION,
                "data": [
                    {"range": u["range"], "majorDimension": "ROWS", "values": u["values"]}
                    for u in updates
                ],
            },
        )
        return await self._execute(request, "batch update")
