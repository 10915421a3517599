"""SQLite-backed persistence for users."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from .errors import NotFoundError, StorageError
from .models import User, UserCreationRequest, UserUpdatePatch
from .queries import build_user_update

logger = logging.getLogger("userservice.database")

_TIMESTAMP_SQL = "strftime('%Y-%m-%d %H:%M:%fZ', 'now')"


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        logger.warning("%s failed: %s", operation, exc)
        raise StorageError(operation, str(exc)) from exc


class Database:
    """Repository for the ``users`` table.

    The instance only remembers where the database lives; every operation
    opens its own connection so handlers running on different threads never
    share one.
    """

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the users table if it does not already exist."""

        with _storage_errors("error initialising database"), self._connect() as conn:
            conn.executescript(
                f"""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY NOT NULL
                        DEFAULT (lower(substr(hex(randomblob(8)), 1, 15))),
                    email TEXT NOT NULL UNIQUE,
                    emailVisibility INTEGER NOT NULL DEFAULT 0,
                    verified INTEGER NOT NULL DEFAULT 0,
                    name TEXT NOT NULL DEFAULT '',
                    avatar TEXT NOT NULL DEFAULT '',
                    created TEXT NOT NULL DEFAULT ({_TIMESTAMP_SQL}),
                    updated TEXT NOT NULL DEFAULT ({_TIMESTAMP_SQL})
                );

                CREATE TRIGGER IF NOT EXISTS users_touch_updated
                AFTER UPDATE ON users
                FOR EACH ROW WHEN NEW.updated = OLD.updated
                BEGIN
                    UPDATE users SET updated = {_TIMESTAMP_SQL} WHERE id = NEW.id;
                END;
                """
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_users(self) -> List[User]:
        with _storage_errors("error getting users"), self._connect() as conn:
            rows = conn.execute("SELECT * FROM users").fetchall()
        return [self._row_to_user(row) for row in rows]

    def get_user_by_id(self, user_id: str) -> User:
        with _storage_errors("error getting user"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE id = :user_id",
                {"user_id": user_id},
            ).fetchone()
        if row is None:
            raise NotFoundError("id", user_id)
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> User:
        with _storage_errors("error getting user"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = :email",
                {"email": email},
            ).fetchone()
        if row is None:
            raise NotFoundError("email", email)
        return self._row_to_user(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_user(self, request: UserCreationRequest) -> User:
        """Insert a user and return the stored record, including generated fields."""

        with _storage_errors("error creating new user"), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (email, emailVisibility, name)
                VALUES (:email, :email_visibility, :name)
                """,
                {
                    "email": request.email,
                    "email_visibility": request.email_visibility,
                    "name": request.name,
                },
            )

        user = self.get_user_by_email(request.email)
        logger.info("Created user %s", user.id)
        return user

    def update_user_by_id(self, user_id: str, patch: UserUpdatePatch) -> User:
        """Apply ``patch`` to the user and return the row as stored afterwards."""

        statement = build_user_update(user_id, patch)
        with _storage_errors("error updating user"), self._connect() as conn:
            conn.execute(statement.sql, statement.params)

        logger.info(
            "Updated user %s (%s)",
            user_id,
            ", ".join(assignment.column for assignment in statement.assignments),
        )
        return self.get_user_by_id(user_id)

    def delete_user_by_id(self, user_id: str) -> int:
        """Delete the user and return the number of rows removed.

        Deleting an unknown id removes nothing and is not treated as an error.
        """

        with _storage_errors("error deleting user"), self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM users WHERE id = :user_id",
                {"user_id": user_id},
            )
            deleted = cursor.rowcount
        logger.info("Deleted %d row(s) for user %s", deleted, user_id)
        return deleted

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=str(row["id"]),
            email=str(row["email"]),
            email_visibility=bool(row["emailVisibility"]),
            verified=bool(row["verified"]),
            name=str(row["name"]),
            avatar=str(row["avatar"]),
            created=str(row["created"]),
            updated=str(row["updated"]),
        )


__all__ = ["Database", "resolve_database_path"]
