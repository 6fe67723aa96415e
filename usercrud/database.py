"""SQLite-backed persistence for user records."""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .errors import DuplicateEmailError
from .models import User, UserDraft
from .storage import UserStore

logger = logging.getLogger("usercrud.database")

_USER_COLUMNS = "id, name, email, phone, address, created_at, updated_at"


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "usercrud.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _fold_case(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


class Database(UserStore):
    """Simple wrapper around SQLite for persisting users."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # SQLite lower() only folds ASCII letters.
        conn.create_function("fold_case", 1, _fold_case, deterministic=True)
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    phone TEXT,
                    address TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_users_name ON users(name);
                """
            )
        logger.debug("Schema ensured at %s", self._path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_all(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    def find_by_id(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def find_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def find_by_name_containing(self, fragment: str) -> List[User]:
        return self.search_by_criteria(name=fragment)

    def exists_by_email(self, email: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM users WHERE email = ? LIMIT 1", (email,)).fetchone()
        return row is not None

    def exists_by_id(self, user_id: int) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM users WHERE id = ? LIMIT 1", (user_id,)).fetchone()
        return row is not None

    def search_by_criteria(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> List[User]:
        # instr() keeps '%' and '_' literal.
        clauses: List[str] = []
        values: List[object] = []
        if name is not None:
            clauses.append("instr(fold_case(name), fold_case(?)) > 0")
            values.append(name)
        if email is not None:
            clauses.append("instr(fold_case(email), fold_case(?)) > 0")
            values.append(email)
        if phone is not None:
            clauses.append("phone IS NOT NULL AND instr(phone, ?) > 0")
            values.append(phone)

        query = f"SELECT {_USER_COLUMNS} FROM users"
        if clauses:
            query += " WHERE " + " AND ".join(f"({clause})" for clause in clauses)
        query += " ORDER BY id"

        with self._connect() as conn:
            rows = conn.execute(query, values).fetchall()
        return [self._row_to_user(row) for row in rows]

    def count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        return int(row["total"])

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def save(self, draft: UserDraft) -> User:
        if draft.id is None:
            return self._insert(draft)
        return self._update(draft)

    def delete_by_id(self, user_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0

    def delete_all(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM users")

    def _insert(self, draft: UserDraft) -> User:
        created_at = _current_timestamp()
        serialized = _serialize_datetime(created_at)
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (name, email, phone, address, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (draft.name, draft.email, draft.phone, draft.address, serialized, serialized),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateEmailError(draft.email) from exc
            user_id = cursor.lastrowid

        return User(
            id=int(user_id),
            name=draft.name,
            email=draft.email,
            phone=draft.phone,
            address=draft.address,
            created_at=created_at,
            updated_at=created_at,
        )

    def _update(self, draft: UserDraft) -> User:
        updated_at = _current_timestamp()
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    UPDATE users
                       SET name = ?, email = ?, phone = ?, address = ?, updated_at = ?
                     WHERE id = ?
                    """,
                    (
                        draft.name,
                        draft.email,
                        draft.phone,
                        draft.address,
                        _serialize_datetime(updated_at),
                        draft.id,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateEmailError(draft.email) from exc
            if cursor.rowcount == 0:
                raise KeyError(f"User {draft.id} is not stored")

        refreshed = self.find_by_id(int(draft.id))
        if refreshed is None:
            raise RuntimeError("Failed to load user after update")
        return refreshed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            phone=row["phone"],
            address=row["address"],
            created_at=_parse_datetime(str(row["created_at"])),
            updated_at=_parse_datetime(str(row["updated_at"])),
        )


__all__ = ["Database", "resolve_database_path"]
