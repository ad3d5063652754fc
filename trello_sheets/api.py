"""
Trello HTTP layer, security helpers, and the async board client for trello-sheets-cli.
"""

import hashlib
import json
import re
import sys
import time
import uuid

import httpx

from trello_sheets import config
from trello_sheets.exceptions import CliError, HTTPError, SetupError
from trello_sheets.models import CardFound, CardNotFound

_RETRYABLE_HTTP_CODES = frozenset({429, 502, 503, 504})

# Bodies Trello sends with a 400 when the card id does not resolve on the board.
TRELLO_CARD_NOT_FOUND_ERRORS = frozenset({"Could not find the card", "invalid id"})

_SENSITIVE_PARAMS = frozenset({"key", "token"})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _sanitize_params_for_log(params):
    """Mask credential query params before logging."""
    return {k: ("***" if k.lower() in _SENSITIVE_PARAMS else v) for k, v in (params or {}).items()}


# ---------------------------------------------------------------------------
# Structured HTTP logging
# ---------------------------------------------------------------------------


def _log_http_event(**fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    print("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _is_sampled_request(request_id):
    """Decide if a request should be logged based on sample rate."""
    rate = config.HTTP_LOG_SAMPLE_RATE
    if rate <= 0:
        return False
    if rate >= 1:
        return True
    if not request_id:
        return False
    digest = hashlib.sha256(request_id.encode("utf-8")).digest()
    bucket = int.from_bytes(digest[:4], "big") / 4294967295.0
    return bucket < rate


def _error_envelope(message, status=None, request_id=None, retryable=None, detail=None):
    """Build a consistent CLI-safe HTTP error message."""
    meta = []
    if status is not None:
        meta.append(f"status={status}")
    if request_id:
        meta.append(f"request_id={request_id}")
    if retryable is not None:
        meta.append(f"retryable={'yes' if retryable else 'no'}")
    suffix = f" ({', '.join(meta)})" if meta else ""
    body = f"[ERROR] {message}{suffix}"
    if detail:
        body += f"\n{detail}"
    return body


def _is_card_not_found(err):
    """True when an HTTPError from a card fetch means the card is not on that board."""
    if err.code == 404:
        return True
    return err.code == 400 and (err.body or "").strip() in TRELLO_CARD_NOT_FOUND_ERRORS


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


async def _http_request(http, method, path, params=None):
    """Make one HTTP request to the Trello API.
    Returns parsed JSON on success.
    Raises HTTPError for HTTP errors (caller handles specific codes).
    Raises CliError on network/timeout/parse errors."""
    request_id = str(uuid.uuid4())
    sampled = _is_sampled_request(request_id)
    safe_params = _sanitize_params_for_log(params)
    start = time.perf_counter()
    if sampled:
        _log_http_event(
            phase="request",
            method=method,
            path=path,
            params=safe_params,
            request_id=request_id,
        )
    try:
        resp = await http.request(
            method,
            path,
            params=params,
            headers={"Accept": "application/json", "X-Request-Id": request_id},
        )
    except httpx.TimeoutException as e:
        if sampled:
            _log_http_event(
                phase="network_error",
                method=method,
                path=path,
                error="timeout",
                request_id=request_id,
            )
        raise CliError(
            _error_envelope(
                f"Request timed out after {config.HTTP_TIMEOUT_SECONDS} seconds. "
                "Is the Trello API reachable?",
                request_id=request_id,
                retryable=False,
            )
        ) from e
    except httpx.TransportError as e:
        if sampled:
            _log_http_event(
                phase="network_error",
                method=method,
                path=path,
                error=f"transport_error: {e}",
                request_id=request_id,
            )
        raise CliError(
            _error_envelope(f"Connection failed: {e}", request_id=request_id, retryable=False)
        ) from e

    raw = resp.content
    if sampled:
        _log_http_event(
            phase="response",
            method=method,
            path=path,
            status=resp.status_code,
            bytes=len(raw),
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            request_id=request_id,
        )
    if resp.status_code >= 400:
        body = raw[: config.HTTP_MAX_RESPONSE_BYTES].decode("utf-8", errors="replace")
        raise HTTPError(resp.status_code, resp.reason_phrase, body, headers=resp.headers)
    if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
        raise CliError(
            "[ERROR] Response too large from Trello API "
            f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
        )
    try:
        return json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        content_type = resp.headers.get("Content-Type", "")
        if content_type and "json" not in content_type.lower():
            raise CliError(
                f"[ERROR] Unexpected Content-Type from server ({content_type}). "
                "This may be a proxy or network issue."
            ) from None
        raise CliError("[ERROR] Unexpected response from Trello API (not valid JSON).") from None


def _raise_for_http_error(err, operation):
    """Translate an HTTPError into the CLI error taxonomy."""
    if err.code in (401, 403):
        raise SetupError(
            "[TOKEN_EXPIRED] Trello rejected the API key/token "
            f"while trying to {operation}. Check TRELLO_API_KEY and TRELLO_API_TOKEN in .env."
        ) from err
    if err.code == 429:
        raise CliError(
            "[ERROR] Trello rate limit reached. Wait a few seconds and re-run the command."
        ) from err
    raise CliError(
        _error_envelope(
            f"Failed to {operation}: HTTP {err.code} {err.reason}",
            status=err.code,
            request_id=err.headers.get("X-Request-Id") if err.headers else None,
            retryable=err.code in _RETRYABLE_HTTP_CODES,
            detail=_sanitize_error(err.body),
        )
    ) from err


# ---------------------------------------------------------------------------
# Board client
# ---------------------------------------------------------------------------


class TrelloClient:
    """Async Trello REST client covering the calls the sync engine needs.

    Use as ``async with TrelloClient() as client:`` so the connection pool
    is closed when the command finishes.
    """

    def __init__(self, api_key=None, api_token=None, *, base_url=None, transport=None):
        self._auth = {
            "key": api_key if api_key is not None else config.TRELLO_API_KEY,
            "token": api_token if api_token is not None else config.TRELLO_API_TOKEN,
        }
        self._http = httpx.AsyncClient(
            base_url=base_url or config.TRELLO_BASE_URL,
            timeout=max(1, config.HTTP_TIMEOUT_SECONDS),
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def _call(self, method, path, operation, params=None):
        try:
            return await _http_request(self._http, method, path, {**self._auth, **(params or {})})
        except HTTPError as e:
            _raise_for_http_error(e, operation)

    async def list_lists(self, board_id):
        """Open lists on a board as [{id, name}, ...]."""
        result = await self._call(
            "GET",
            f"/boards/{board_id}/lists",
            f"fetch lists of board {board_id}",
            {"fields": "id,name"},
        )
        return result or []

    async def list_cards(self, list_id):
        result = await self._call(
            "GET", f"/lists/{list_id}/cards", f"fetch cards of list {list_id}"
        )
        return result or []

    async def get_card(self, board_id, card_id):
        """Return CardFound or CardNotFound; other failures raise CliError."""
        params = {**self._auth}
        try:
            card = await _http_request(
                self._http, "GET", f"/boards/{board_id}/cards/{card_id}", params
            )
        except HTTPError as e:
            if _is_card_not_found(e):
                return CardNotFound(card_id=card_id)
            _raise_for_http_error(e, f"fetch card {card_id}")
        if not isinstance(card, dict) or not card.get("id"):
            return CardNotFound(card_id=card_id)
        return CardFound(card=card)

    async def add_label(self, card_id, label_id):
        return await self._call(
            "POST",
            f"/cards/{card_id}/idLabels",
            f"add label to card {card_id}",
            {"value": label_id},
        )
