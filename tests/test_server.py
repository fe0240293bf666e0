import base64
import io
import json
from wsgiref.util import setup_testing_defaults

import pytest

from choreboard.blueprints import create_blueprint
from choreboard.chores import create_chore
from choreboard.db import open_database
from choreboard.models import Chore, Routine, RoutineBlueprint
from choreboard.routines import create_routine
from choreboard.server import ChoreApp, authenticate, main, validate_user

SCHEMA = """
CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
CREATE TABLE chores (
    id INTEGER PRIMARY KEY,
    created TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    modified TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    name TEXT NOT NULL,
    default_points INTEGER NOT NULL CHECK (default_points > 0),
    image TEXT
);
CREATE TABLE routine_blueprints (
    id INTEGER PRIMARY KEY,
    created TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    modified TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    name TEXT NOT NULL,
    to_be_completed_by TEXT,
    allow_multiple_instances_per_day BOOLEAN NOT NULL DEFAULT 0,
    recurrence TEXT,
    image TEXT
);
CREATE TABLE routine_blueprint_chores (
    id INTEGER PRIMARY KEY,
    created TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    modified TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    routine_blueprint_id INTEGER NOT NULL,
    chore_id INTEGER NOT NULL
);
CREATE TABLE routines (
    id INTEGER PRIMARY KEY,
    created TIMESTAMP NOT NULL,
    modified TIMESTAMP NOT NULL,
    owner_id INTEGER NOT NULL,
    routine_blueprint_id INTEGER
);
CREATE TABLE chore_routines (
    id INTEGER PRIMARY KEY,
    created TIMESTAMP NOT NULL,
    modified TIMESTAMP NOT NULL,
    completed_at TIMESTAMP,
    completed_by INTEGER,
    points_awarded INTEGER NOT NULL,
    routine_id INTEGER NOT NULL,
    chore_id INTEGER NOT NULL
);
"""

password = "secret"


def basic(username, secret_word):
    encoded = base64.b64encode(f"{username}:{secret_word}".encode()).decode()
    return "Basic " + encoded


@pytest.fixture
def db():
    conn = open_database(":memory:")
    conn.executescript(SCHEMA)
    conn.execute("INSERT INTO users (id, name) VALUES (1, 'admin')")
    yield conn
    conn.close()


@pytest.fixture
def static_dir(tmp_path):
    static = tmp_path / "static"
    (static / "img").mkdir(parents=True)
    (static / "app.css").write_text("body { color: red; }")
    (tmp_path / "outside.txt").write_text("hidden")
    return static


@pytest.fixture
def app(db, static_dir):
    return ChoreApp(db, str(static_dir))


def call(app, path, method="GET", body=b"", auth=True):
    environ = {}
    setup_testing_defaults(environ)
    environ["PATH_INFO"] = path
    environ["REQUEST_METHOD"] = method
    environ["wsgi.input"] = io.BytesIO(body)
    environ["CONTENT_LENGTH"] = str(len(body))
    if auth:
        environ["HTTP_AUTHORIZATION"] = basic("admin", password)
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    chunks = app(environ, start_response)
    return captured["status"], captured["headers"], b"".join(chunks)


def test_validate_user():
    assert validate_user("admin", password) is True
    assert validate_user("admin", "password") is False
    assert validate_user("someone", password) is False


def test_authenticate_valid_header():
    user = authenticate(basic("admin", password))
    assert user.name == "admin"
    assert user.id == 1
    assert user.password == password
    assert user.created == user.modified


def test_authenticate_scheme_is_case_insensitive():
    header = basic("admin", password).replace("Basic", "basic", 1)
    assert authenticate(header).name == "admin"


@pytest.mark.parametrize(
    "header",
    [None, "", "Bearer token", "Basic ???", basic("admin", "password")],
)
def test_authenticate_rejects(header):
    assert authenticate(header) is None


def test_unauthenticated_request_is_challenged(app):
    status, headers, body = call(app, "/", auth=False)
    assert status.startswith("401")
    assert headers["WWW-Authenticate"] == 'Basic realm="Restricted"'
    assert body == b"Unauthorized\n"


def test_home_lists_relevant_routines(app, db):
    create_blueprint(
        db, RoutineBlueprint(name="Morning", to_be_completed_by="morning", recurrence="Daily"), []
    )
    status, headers, body = call(app, "/")
    assert status.startswith("200")
    assert headers["Content-Type"] == "application/json"
    assert [item["name"] for item in json.loads(body)] == ["Morning"]


def test_unknown_path_is_not_found(app):
    status, _, body = call(app, "/nowhere")
    assert status.startswith("404")
    assert body == b"404 page not found\n"


def test_static_file_is_served(app):
    status, headers, body = call(app, "/static/app.css")
    assert status.startswith("200")
    assert headers["Content-Type"].startswith("text/css")
    assert body == b"body { color: red; }"


def test_static_cannot_escape_directory(app):
    status, _, body = call(app, "/static/../outside.txt")
    assert status.startswith("404")
    assert b"hidden" not in body


def test_static_missing_file(app):
    status, _, _ = call(app, "/static/missing.css")
    assert status.startswith("404")


def test_static_directory_listing(app):
    status, _, body = call(app, "/static/")
    assert status.startswith("200")
    assert b'<a href="app.css">app.css</a>' in body
    assert b'<a href="img/">img/</a>' in body


def test_static_directory_redirects_to_slash(app):
    status, headers, _ = call(app, "/static/img")
    assert status.startswith("301")
    assert headers["Location"] == "img/"


def test_api_through_app(app, db):
    chore = create_chore(db, Chore(name="Dishes", default_points=5))
    routine = create_routine(db, Routine(owner_id=1))
    status, _, body = call(
        app,
        f"/api/routine/{routine.id}/chore/{chore.id}",
        method="POST",
        body=b'{"completed": true}',
    )
    assert status.startswith("200")
    data = json.loads(body)
    assert data["success"] is True
    assert data["chore_routine"]["completed_by"] == 1


def test_main_fails_without_migrations(tmp_path):
    code = main(
        ["--database", str(tmp_path / "chores.db"), "--migrations", str(tmp_path / "missing")]
    )
    assert code == 1