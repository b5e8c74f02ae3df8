"""Relational connection management — SQLite (default) and PostgreSQL."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import psycopg2

from contentstore.config import AppConfig, StorageBackend
from contentstore.errors import (
    ConfigurationError,
    IntegrityError,
    StorageConnectionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# Largest id each dialect's id columns hold: SQLite INTEGER, PostgreSQL SERIAL.
MAX_ID = {
    StorageBackend.SQLITE: 2**63 - 1,
    StorageBackend.POSTGRESQL: 2**31 - 1,
}


class Transaction:
    """A single unit of work over one open connection.

    Queries are written with ``?`` placeholders; PostgreSQL gets them
    rewritten to ``%s``.
    """

    def __init__(self, conn: Any, dialect: StorageBackend):
        self.conn = conn
        self.dialect = dialect

    def _adapt(self, sql: str) -> str:
        if self.dialect == StorageBackend.POSTGRESQL:
            return sql.replace("?", "%s")
        return sql

    def execute(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a query and return results as list of dicts."""
        cursor = self.conn.cursor()
        try:
            cursor.execute(self._adapt(sql), params)
            if cursor.description:
                columns = [d[0] for d in cursor.description]
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
            return []
        finally:
            cursor.close()

    def execute_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a query and return the first row as a dict, or None."""
        results = self.execute(sql, params)
        return results[0] if results else None

    def execute_write(self, sql: str, params: tuple = ()) -> int:
        """Execute an INSERT/UPDATE/DELETE and return the affected row count."""
        cursor = self.conn.cursor()
        try:
            cursor.execute(self._adapt(sql), params)
            return cursor.rowcount
        finally:
            cursor.close()

    def run_script(self, sql: str) -> None:
        if self.dialect == StorageBackend.SQLITE:
            self.conn.executescript(sql)
            return
        cursor = self.conn.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()


class Database:
    """Relational engine behind the repositories — opens one connection per unit of work."""

    def __init__(self, config: AppConfig):
        self.dialect = config.backend
        if self.dialect == StorageBackend.SQLITE:
            self.config = config.sqlite
            self._ensure_db()
        elif self.dialect == StorageBackend.POSTGRESQL:
            self.config = config.postgres
            self.config.validate_required()
        else:
            raise ConfigurationError(f"{self.dialect.value} is not a relational backend")
        self.max_id = MAX_ID[self.dialect]

    def _ensure_db(self) -> None:
        """Ensure the SQLite database directory exists."""
        db_path = Path(self.config.path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> Any:
        if self.dialect == StorageBackend.SQLITE:
            try:
                conn = sqlite3.connect(
                    str(self.config.path),
                    timeout=self.config.timeout,
                    detect_types=sqlite3.PARSE_DECLTYPES,
                )
            except sqlite3.OperationalError as e:
                raise StorageConnectionError(f"Failed to open SQLite database: {e}") from e
            try:
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA foreign_keys=ON")
            except sqlite3.Error as e:
                conn.close()
                raise StorageConnectionError(f"Failed to open SQLite database: {e}") from e
            return conn

        try:
            return psycopg2.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                dbname=self.config.db,
                sslmode=self.config.sslmode,
                connect_timeout=self.config.connect_timeout,
            )
        except psycopg2.OperationalError as e:
            raise StorageConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

    def _rollback(self, conn: Any) -> None:
        try:
            conn.rollback()
        except (sqlite3.Error, psycopg2.Error) as e:
            # The connection is gone; the server discards the transaction.
            logger.warning("Rollback failed on %s: %s", self.dialect.value, e)

    @contextmanager
    def transaction(self) -> Generator[Transaction, None, None]:
        """Open a unit of work: commit on success, roll back on any error.

        Driver errors leave as RepositoryError subclasses:
        constraint violations as IntegrityError, out-of-range or badly typed
        values as ValidationError, lost or locked connections as
        StorageConnectionError.
        """
        conn = self._connect()
        logger.debug("Opened %s unit of work", self.dialect.value)
        try:
            yield Transaction(conn, self.dialect)
            conn.commit()
        except Exception as e:
            self._rollback(conn)
            logger.warning("Rolled back %s unit of work: %s", self.dialect.value, e)
            if isinstance(e, (sqlite3.IntegrityError, psycopg2.IntegrityError)):
                raise IntegrityError(str(e).strip()) from e
            if isinstance(e, psycopg2.DataError):
                raise ValidationError(str(e).strip()) from e
            if isinstance(
                e, (sqlite3.OperationalError, psycopg2.OperationalError, psycopg2.InterfaceError)
            ):
                raise StorageConnectionError(str(e).strip()) from e
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create the schema if tables don't exist."""
        migrations = sorted((MIGRATIONS_DIR / self.dialect.value).glob("*.sql"))
        if not migrations:
            logger.warning("No migrations found for %s", self.dialect.value)
        for migration_path in migrations:
            with self.transaction() as tx:
                tx.run_script(migration_path.read_text())
            logger.info("Applied migration: %s", migration_path.name)


def parse_id(value: str, entity: str, max_id: int = MAX_ID[StorageBackend.SQLITE]) -> int:
    """Relational ids travel as decimal strings and must fit the id column."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Malformed {entity} id: {value!r}") from None
    if not -max_id - 1 <= number <= max_id:
        raise ValidationError(f"Malformed {entity} id: {value!r} is out of range")
    return number


def parse_viewer(value: str | None, max_id: int = MAX_ID[StorageBackend.SQLITE]) -> int | None:
    """A missing or malformed viewer sees every post as not liked."""
    if value is None:
        return None
    try:
        return parse_id(value, "viewer", max_id)
    except ValidationError:
        return None
