"""WSGI application and command-line entry point of the chore board."""

from __future__ import annotations

import argparse
import base64
import binascii
import html
import json
import logging
import mimetypes
import posixpath
import sqlite3
from datetime import datetime, timezone
from http import HTTPStatus
from pathlib import Path
from typing import Any, Callable, Iterable
from urllib.parse import quote
from wsgiref.simple_server import make_server

from .api import handle_api
from .db import DEFAULT_DATABASE, init_database
from .migrations import DEFAULT_DIRECTORY, MigrationError
from .models import User
from .routine_service import RoutineService

log = logging.getLogger(__name__)

USER_CONTEXT_KEY = "choreboard.user"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "secret"
DEFAULT_STATIC_DIR = "static"
DEFAULT_PORT = 8080

_CREDENTIAL_SEPARATOR = ":"

StartResponse = Callable[..., Any]


def validate_user(username: str, password: str) -> bool:
    """Check a pair of credentials against the single configured account."""
    return username == ADMIN_USERNAME and password == ADMIN_PASSWORD


def authenticate(authorization: str | None) -> User | None:
    """Return the user named by a Basic Authorization header, if valid."""
    prefix = "Basic "
    if not authorization or authorization[: len(prefix)].lower() != prefix.lower():
        return None
    try:
        decoded = base64.b64decode(authorization[len(prefix):], validate=True)
    except (binascii.Error, ValueError):
        return None
    credentials = decoded.decode("utf-8", errors="replace")
    username, sep, password = credentials.partition(_CREDENTIAL_SEPARATOR)
    if not sep or not validate_user(username, password):
        return None
    now = datetime.now(timezone.utc)
    return User(id=1, created=now, modified=now, name=username, password=password)


def _status_line(status: int) -> str:
    return f"{status} {HTTPStatus(status).phrase}"


class ChoreApp:
    """The chore board as a WSGI application; every route requires login."""

    def __init__(self, db: sqlite3.Connection, static_dir: str = DEFAULT_STATIC_DIR):
        self.db = db
        self.static_dir = Path(static_dir)

    def __call__(self, environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        user = authenticate(environ.get("HTTP_AUTHORIZATION"))
        if user is None:
            return self._text(
                start_response,
                401,
                "Unauthorized",
                [("WWW-Authenticate", 'Basic realm="Restricted"')],
            )
        environ[USER_CONTEXT_KEY] = user

        path = environ.get("PATH_INFO") or "/"
        if path == "/":
            return self._home(start_response, user)
        if path.startswith("/api/"):
            return self._api(environ, start_response, path, user)
        if path.startswith("/static/"):
            return self._static(start_response, path)
        return self._text(start_response, 404, "404 page not found")

    @staticmethod
    def _send(
        start_response: StartResponse,
        status: int,
        content_type: str,
        body: bytes,
        extra: Iterable[tuple[str, str]] = (),
    ) -> list[bytes]:
        headers = [("Content-Type", content_type), ("Content-Length", str(len(body)))]
        headers.extend(extra)
        start_response(_status_line(status), headers)
        return [body]

    def _text(
        self,
        start_response: StartResponse,
        status: int,
        message: str,
        extra: Iterable[tuple[str, str]] = (),
    ) -> list[bytes]:
        headers = [("X-Content-Type-Options", "nosniff"), *extra]
        body = (message + "\n").encode("utf-8")
        return self._send(start_response, status, "text/plain; charset=utf-8", body, headers)

    def _home(self, start_response: StartResponse, user: User) -> list[bytes]:
        try:
            routines = RoutineService(self.db).get_relevant_routines(user.id)
        except (sqlite3.Error, ValueError) as exc:
            log.error("Failed to load routines: %s", exc)
            return self._text(start_response, 500, "Failed to load routines")
        body = json.dumps([routine.to_dict() for routine in routines]).encode("utf-8")
        return self._send(start_response, 200, "application/json", body)

    def _api(
        self, environ: dict[str, Any], start_response: StartResponse, path: str, user: User
    ) -> list[bytes]:
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        body = environ["wsgi.input"].read(length) if length > 0 else b""
        method = environ.get("REQUEST_METHOD", "GET")
        response = handle_api(self.db, method, path, user, body)
        return self._send(start_response, response.status, response.content_type, response.body())

    def _static(self, start_response: StartResponse, path: str) -> list[bytes]:
        relative = posixpath.normpath("/" + path[len("/static/"):])
        target = self.static_dir.joinpath(*(part for part in relative.split("/") if part))

        if target.is_dir():
            if not path.endswith("/"):
                location = posixpath.basename(path) + "/"
                return self._send(
                    start_response, 301, "text/html; charset=utf-8", b"", [("Location", location)]
                )
            index = target / "index.html"
            if not index.is_file():
                return self._listing(start_response, target)
            target = index

        if not target.is_file():
            return self._text(start_response, 404, "404 page not found")
        try:
            content = target.read_bytes()
        except OSError:
            return self._text(start_response, 404, "404 page not found")
        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        if content_type.startswith("text/"):
            content_type += "; charset=utf-8"
        return self._send(start_response, 200, content_type, content)

    def _listing(self, start_response: StartResponse, directory: Path) -> list[bytes]:
        names = sorted(
            entry.name + "/" if entry.is_dir() else entry.name for entry in directory.iterdir()
        )
        lines = [f'<a href="{quote(name)}">{html.escape(name)}</a>' for name in names]
        body = ("<pre>\n" + "".join(line + "\n" for line in lines) + "</pre>\n").encode("utf-8")
        return self._send(start_response, 200, "text/html; charset=utf-8", body)


def main(argv: list[str] | None = None) -> int:
    """Open the database, apply migrations and serve the chore board."""
    parser = argparse.ArgumentParser(prog="choreboard", description="Serve the chore board.")
    parser.add_argument("--database", default=DEFAULT_DATABASE, help="SQLite database file")
    parser.add_argument("--migrations", default=DEFAULT_DIRECTORY, help="migrations directory")
    parser.add_argument("--static", default=DEFAULT_STATIC_DIR, help="static files directory")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        db = init_database(args.database, args.migrations)
    except (MigrationError, sqlite3.Error, OSError) as exc:
        log.error("Failed to initialize database: %s", exc)
        return 1

    app = ChoreApp(db, args.static)
    log.info("Server is starting on port %d...", args.port)
    try:
        with make_server(args.host, args.port, app) as server:
            server.serve_forever()
    except OSError as exc:
        log.error("Server failed to start: %s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    finally:
        db.close()
    return 0