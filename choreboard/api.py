"""JSON API for marking the chores of a routine as done or not done."""

from __future__ import annotations

import json
import re
import sqlite3
from dataclasses import dataclass
from typing import Any

from .chores import upsert_chore_routine
from .models import User

_INT64 = re.compile(r"[+-]?[0-9]+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1

_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class _BadRequestBody(ValueError):
    """The request body is not a valid completion request."""


@dataclass(frozen=True)
class ApiResponse:
    """Status and payload of an API response; text payloads are plain errors."""

    status: int
    payload: dict[str, Any] | str

    @property
    def content_type(self) -> str:
        if isinstance(self.payload, str):
            return "text/plain; charset=utf-8"
        return "application/json"

    def body(self) -> bytes:
        """The encoded response body, newline terminated."""
        if isinstance(self.payload, str):
            return (self.payload + "\n").encode("utf-8")
        text = json.dumps(self.payload, ensure_ascii=False, separators=(",", ":"))
        for char, escape in _JSON_ESCAPES.items():
            text = text.replace(char, escape)
        return (text + "\n").encode("utf-8")


def _parse_id(text: str) -> int | None:
    if not _INT64.fullmatch(text):
        return None
    value = int(text)
    return value if _INT64_MIN <= value <= _INT64_MAX else None


def _decode_completed(body: bytes | str) -> bool:
    """Read the "completed" flag from a JSON request body."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    text = text.lstrip(" \t\r\n")
    try:
        value, _ = json.JSONDecoder().raw_decode(text)
    except ValueError as exc:
        raise _BadRequestBody(str(exc)) from exc
    if value is None:
        return False
    if not isinstance(value, dict):
        raise _BadRequestBody("request body must be a JSON object")
    completed = False
    for key, item in value.items():
        if key.casefold() != "completed":
            continue
        if item is None:
            continue
        if not isinstance(item, bool):
            raise _BadRequestBody("completed must be a boolean")
        completed = item
    return completed


def _failure(status: int, error: str) -> ApiResponse:
    return ApiResponse(status, {"success": False, "error": error})


def _routine_chore(
    db: sqlite3.Connection,
    method: str,
    routine_id: int,
    path: str,
    user: User | None,
    body: bytes | str,
) -> ApiResponse:
    chore_id = _parse_id(path.split("/")[0])
    if chore_id is None:
        return ApiResponse(400, "Invalid chore ID format")
    if method != "POST":
        return ApiResponse(405, "Method not allowed")
    if user is None:
        return _failure(401, "User not authenticated")
    try:
        completed = _decode_completed(body)
    except _BadRequestBody:
        return _failure(400, "Invalid request body")
    try:
        record = upsert_chore_routine(db, routine_id, chore_id, completed, user.id)
    except (sqlite3.Error, LookupError, ValueError) as exc:
        return _failure(500, f"Failed to update chore status: {exc}")
    return ApiResponse(200, {"success": True, "chore_routine": record.to_dict()})


def handle_api(
    db: sqlite3.Connection,
    method: str,
    path: str,
    user: User | None,
    body: bytes | str = b"",
) -> ApiResponse:
    """Serve one API request for a URL path beginning with "/api"."""
    if path.startswith("/api"):
        path = path[len("/api"):]
    if not path.startswith("/routine/"):
        return ApiResponse(404, "API endpoint not found")

    parts = path[len("/routine/"):].split("/")
    routine_id = _parse_id(parts[0])
    if routine_id is None:
        return ApiResponse(400, "Invalid routine ID format")

    rest = "/".join(parts[1:])
    if rest.startswith("chore/"):
        return _routine_chore(db, method, routine_id, rest[len("chore/"):], user, body)
    return ApiResponse(404, "API endpoint not found")