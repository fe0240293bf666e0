"""Apply numbered SQL migration files to a SQLite database."""

from __future__ import annotations

import logging
import os
import re
import sqlite3
from contextlib import suppress
from dataclasses import dataclass
from operator import attrgetter
from pathlib import Path
from typing import Iterator

log = logging.getLogger(__name__)

DEFAULT_DIRECTORY = "migrations"

_MIGRATION_ID = re.compile(r"[+-]?\d+")


class MigrationError(Exception):
    """Raised when migrations cannot be read or applied."""


@dataclass(frozen=True)
class MigrationFile:
    id: int
    path: str
    sql: str


def _walk(directory: str) -> Iterator[str]:
    """Yield file paths below a directory in lexical order, depth first."""
    with os.scandir(directory) as iterator:
        entries = sorted(iterator, key=attrgetter("name"))
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(entry.path)
        else:
            yield entry.path


class MigrationManager:
    """Tracks and applies migrations for one database connection."""

    def __init__(self, db: sqlite3.Connection, directory: str | os.PathLike = DEFAULT_DIRECTORY):
        self.db = db
        self.directory = directory

    def ensure_migrations_table(self) -> None:
        self.db.execute(
            """
            CREATE TABLE IF NOT EXISTS migrations (
                id INTEGER PRIMARY KEY,
                applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                migration_id INTEGER UNIQUE NOT NULL
            )
            """
        )

    def get_applied_migrations(self) -> set[int]:
        """Return the IDs of migrations already recorded as applied."""
        try:
            self.ensure_migrations_table()
        except sqlite3.Error as exc:
            raise MigrationError(f"error creating migrations table: {exc}") from exc
        try:
            rows = self.db.execute(
                "SELECT migration_id FROM migrations ORDER BY migration_id"
            ).fetchall()
        except sqlite3.Error as exc:
            raise MigrationError(f"error querying migrations: {exc}") from exc
        return {row[0] for row in rows}

    def _scan(self) -> Iterator[MigrationFile]:
        for path in _walk(os.fspath(self.directory)):
            if not path.endswith(".sql"):
                continue
            id_part = os.path.basename(path).split("_")[0]
            if not _MIGRATION_ID.fullmatch(id_part):
                log.warning("Skipping file with invalid migration ID format: %s", path)
                continue
            try:
                content = Path(path).read_text(encoding="utf-8")
            except OSError as exc:
                raise MigrationError(f"error reading migration file {path}: {exc}") from exc
            yield MigrationFile(id=int(id_part), path=path, sql=content)

    def get_migration_files(self) -> list[MigrationFile]:
        """Find all SQL migration files in the migrations directory."""
        try:
            return list(self._scan())
        except (OSError, MigrationError) as exc:
            raise MigrationError(f"error walking migrations directory: {exc}") from exc

    def _rollback(self) -> None:
        with suppress(sqlite3.Error):
            self.db.rollback()

    def apply_migration(self, migration: MigrationFile) -> None:
        """Run one migration and record it, all within a single transaction."""
        try:
            self.db.executescript("BEGIN;\n" + migration.sql)
        except sqlite3.Error as exc:
            self._rollback()
            raise MigrationError(f"error executing migration SQL: {exc}") from exc
        try:
            self.db.execute(
                "INSERT OR IGNORE INTO migrations (migration_id) VALUES (?)", (migration.id,)
            )
        except sqlite3.Error as exc:
            self._rollback()
            raise MigrationError(f"error recording migration: {exc}") from exc
        try:
            self.db.commit()
        except sqlite3.Error as exc:
            self._rollback()
            raise MigrationError(f"error committing transaction: {exc}") from exc

    def run_migrations(self) -> list[int]:
        """Apply pending migrations in numeric order; return the IDs applied."""
        applied = self.get_applied_migrations()
        files = sorted(self.get_migration_files(), key=attrgetter("id"))
        newly_applied = []
        for migration in files:
            if migration.id in applied:
                log.info("Migration %d already applied, skipping", migration.id)
                continue
            log.info("Applying migration %d: %s", migration.id, migration.path)
            try:
                self.apply_migration(migration)
            except MigrationError as exc:
                raise MigrationError(f"failed to apply migration {migration.id}: {exc}") from exc
            log.info("Migration %d applied successfully", migration.id)
            newly_applied.append(migration.id)
        return newly_applied


def run_migrations(
    db: sqlite3.Connection, directory: str | os.PathLike = DEFAULT_DIRECTORY
) -> list[int]:
    """Run all pending migrations from a directory against a database."""
    return MigrationManager(db, directory).run_migrations()