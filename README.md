# choreboard

A small chore board for a household. Chores are grouped into routine
blueprints such as "Morning" or "Bedtime". Each day the board works out which
routines apply to a user, how many of their chores are done, and lets chores be
ticked off one by one. Everything is kept in a single SQLite file.

## Installing

```
pip install .
```

The package needs nothing beyond the Python standard library.

## Running the server

```
choreboard
```

Options:

- `--database` SQLite database file (default `chores.db`, created if missing)
- `--migrations` directory of SQL migration files (default `migrations`)
- `--static` directory served under `/static/` (default `static`)
- `--host` address to listen on (default: all addresses)
- `--port` port to listen on (default `8080`)

On start the database is opened and every pending migration is applied. If
that fails, the command logs the error and exits with status 1.

Every request must carry HTTP Basic credentials for the single built-in
account: user name `admin`, password `secret`. Without them the reply is
`401 Unauthorized` with a `WWW-Authenticate: Basic realm="Restricted"` header.

### Routes

- `GET /` returns a JSON list of the routines relevant to the user today
  (see *Relevant routines* below), each as produced by
  `DisplayableRoutine.to_dict()`.
- `/api/...` is the chore API described below.
- `/static/...` serves files from the static directory. A directory is served
  through its `index.html`, or as a plain link listing if it has none.
- Anything else is `404 page not found`.

### Marking a chore done

```
POST /api/routine/<routine id>/chore/<chore id>
{"completed": true}
```

On success the reply is `200` with JSON
`{"success": true, "chore_routine": {...}}`. The first time a chore is touched
within a routine a record is created, with the chore's default points as the
points awarded. Sending `{"completed": false}` marks it as not done again.

Errors:

- `404` `API endpoint not found` for any other path under `/api`
- `400` `Invalid routine ID format` / `Invalid chore ID format`
- `405` `Method not allowed` for anything but `POST`
- `400` JSON `{"success": false, "error": "Invalid request body"}`
- `500` JSON with `"Failed to update chore status: ..."`, for example when the
  chore does not exist

## Migrations

`choreboard.migrations` applies SQL files found anywhere below the migrations
directory whose names end in `.sql`. The number before the first `_` in the
file name is the migration ID (`1_create_chores.sql` has ID 1); files without
a numeric ID are skipped with a warning. Pending migrations run in numeric
order, each in its own transaction, and every applied ID is recorded in a
`migrations` table so it runs only once. A failing migration is rolled back,
later ones are not run, and `MigrationError` is raised.

```python
from choreboard.db import open_database
from choreboard.migrations import MigrationManager, run_migrations

db = open_database("chores.db")
applied_now = run_migrations(db, "migrations")     # IDs applied by this call
MigrationManager(db, "migrations").get_applied_migrations()   # set of all IDs
```

`choreboard.db.init_database(path, migrations_dir)` does both steps in one call.

## Using the library

```python
from datetime import datetime

from choreboard.db import open_database
from choreboard.models import Chore, RecurrenceType, Routine, RoutineBlueprint
from choreboard.chores import create_chore, get_chores, upsert_chore_routine
from choreboard.blueprints import create_blueprint, get_blueprint
from choreboard.routines import create_routine, get_chore_counts_for_routine
from choreboard.chore_service import ChoreService
from choreboard.routine_service import RoutineService, time_of_day_priority

db = open_database("chores.db")

teeth = create_chore(db, Chore(name="Brush teeth", default_points=5))
morning = create_blueprint(
    db,
    RoutineBlueprint(name="Morning", to_be_completed_by="morning",
                     recurrence=RecurrenceType.DAILY),
    [teeth.id],
)
blueprint, links = get_blueprint(db, morning.id)

routine = create_routine(db, Routine(owner_id=1, routine_blueprint_id=morning.id))
upsert_chore_routine(db, routine.id, teeth.id, True, 1)
get_chore_counts_for_routine(db, routine.id)        # (total, completed)
ChoreService(db).get_chores_for_routine(routine.id)

for item in RoutineService(db).get_relevant_routines(1, datetime.now()):
    print(item.name, item.completion_percentage(), item.is_complete())

time_of_day_priority("morning")   # 10
time_of_day_priority("bedtime")   # 90
```

Modules:

- `choreboard.models`: dataclasses `User`, `Chore`, `Routine`,
  `RoutineBlueprint`, `RoutineBlueprintChore`, `ChoreRoutine`,
  `DisplayableRoutine` (each with `to_dict()`), and the enums
  `RecurrenceType` and `SourceType`.
- `choreboard.db`: `open_database`, `init_database`, `parse_timestamp`,
  `format_timestamp` and `NotFoundError`.
- `choreboard.chores`: `get_chores` (ordered by name), `get_chore`,
  `create_chore`, `update_chore`, `delete_chore`, `upsert_chore_routine`.
- `choreboard.routines`: `get_routines` (a user's routines, newest first),
  `get_routine` (returns `None` if missing), `create_routine`,
  `get_chore_counts_for_routine`.
- `choreboard.blueprints`: `get_blueprints` (newest first), `get_blueprint`,
  `get_blueprint_chores`, `create_blueprint`, `update_blueprint`,
  `delete_blueprint`.
- `choreboard.chore_service.ChoreService`: the stored chore records of a
  routine, followed by unsaved records for blueprint chores not yet touched.
- `choreboard.routine_service`: `RoutineService` and `time_of_day_priority`.
- `choreboard.images.get_image_files`: the sorted names of the `.avif` files
  directly inside a directory (default `./static/img`).
- `choreboard.api.handle_api`: the chore API as a plain function returning an
  `ApiResponse`.
- `choreboard.server`: the WSGI application `ChoreApp`, `authenticate`,
  `validate_user` and the `main` command.

`get_chore` and `get_blueprint` raise `NotFoundError` for an unknown ID, as
do `upsert_chore_routine` for an unknown chore and
`ChoreService.get_chores_for_routine` for an unknown routine.

The queries expect the tables `chores`, `routines`, `routine_blueprints`,
`routine_blueprint_chores`, `chore_routines` and `users`; the package does not
ship the migrations that create them.

### Relevant routines

`RoutineService.get_relevant_routines(user_id, now)` returns the user's stored
routines that belong to an existing blueprint, and then a virtual routine,
with the blueprint's ID negated as its ID, for every other blueprint that
applies on the weekday of `now` (the current time if omitted). `Daily` and
`Weekly` blueprints apply every day, `Weekday` ones Monday to Friday.

The result is ordered by "to be completed by". Known words (morning,
breakfast, noon, lunch, afternoon, evening, dinner, night, bedtime) come in
that order; clock times such as `8:00` or `7pm` are ordered by minute of the
day; anything else goes last.

## What it does not do

There are no HTML pages: the home route answers with JSON, and there are no
admin screens or routes for creating, editing or deleting chores, blueprints
or routines, and no page for a single routine. Those operations exist only as
library functions. There is one fixed login account and no user management.

## Tests

```
pip install ".[test]"
pytest
```