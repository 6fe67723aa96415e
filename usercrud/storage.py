"""Storage interface for user records and an in-process implementation."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import DuplicateEmailError
from .models import User, UserDraft


class UserStore(ABC):
    """Keyed store of :class:`User` records.

    Implementations own persistence and must reject a save that would give
    two users the same email by raising :class:`DuplicateEmailError`.
    """

    @abstractmethod
    def find_all(self) -> List[User]:
        """Return every user ordered by id."""

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[User]:
        """Return the user with ``user_id`` or ``None``."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        """Return the user whose email equals ``email`` exactly, or ``None``."""

    @abstractmethod
    def find_by_name_containing(self, fragment: str) -> List[User]:
        """Return users whose name contains ``fragment``, ignoring case."""

    @abstractmethod
    def exists_by_email(self, email: str) -> bool:
        ...

    @abstractmethod
    def exists_by_id(self, user_id: int) -> bool:
        ...

    @abstractmethod
    def search_by_criteria(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> List[User]:
        """Return users matching every supplied criterion.

        ``name`` and ``email`` match case-insensitive substrings, ``phone`` a
        case-sensitive substring. ``None`` criteria are ignored.
        """

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def save(self, draft: UserDraft) -> User:
        """Insert ``draft`` when it has no id, otherwise replace the stored record."""

    @abstractmethod
    def delete_by_id(self, user_id: int) -> bool:
        """Remove the user and return ``True`` if a record was deleted."""

    @abstractmethod
    def delete_all(self) -> None:
        ...


def contains_ignoring_case(value: Optional[str], fragment: str) -> bool:
    return value is not None and fragment.lower() in value.lower()


def contains(value: Optional[str], fragment: str) -> bool:
    return value is not None and fragment in value


def matches_criteria(
    user: User,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> bool:
    if name is not None and not contains_ignoring_case(user.name, name):
        return False
    if email is not None and not contains_ignoring_case(user.email, email):
        return False
    if phone is not None and not contains(user.phone, phone):
        return False
    return True


class InMemoryUserStore(UserStore):
    """Dictionary-backed store guarded by a lock."""

    def __init__(self) -> None:
        self._users: Dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def find_all(self) -> List[User]:
        with self._lock:
            return [self._users[key] for key in sorted(self._users)]

    def find_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return self._find_by_email_locked(email)

    def find_by_name_containing(self, fragment: str) -> List[User]:
        return [user for user in self.find_all() if contains_ignoring_case(user.name, fragment)]

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def exists_by_id(self, user_id: int) -> bool:
        return self.find_by_id(user_id) is not None

    def search_by_criteria(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> List[User]:
        return [user for user in self.find_all() if matches_criteria(user, name, email, phone)]

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def save(self, draft: UserDraft) -> User:
        now = datetime.now(timezone.utc)
        with self._lock:
            holder = self._find_by_email_locked(draft.email)
            if holder is not None and holder.id != draft.id:
                raise DuplicateEmailError(draft.email)

            if draft.id is None:
                user = User(
                    id=self._next_id,
                    name=draft.name,
                    email=draft.email,
                    phone=draft.phone,
                    address=draft.address,
                    created_at=now,
                    updated_at=now,
                )
                self._next_id += 1
            else:
                existing = self._users.get(draft.id)
                if existing is None:
                    raise KeyError(f"User {draft.id} is not stored")
                user = replace(
                    existing,
                    name=draft.name,
                    email=draft.email,
                    phone=draft.phone,
                    address=draft.address,
                    updated_at=now,
                )
            self._users[user.id] = user
            return user

    def delete_by_id(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def delete_all(self) -> None:
        with self._lock:
            self._users.clear()

    def _find_by_email_locked(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return user
        return None


__all__ = [
    "InMemoryUserStore",
    "UserStore",
    "contains",
    "contains_ignoring_case",
    "matches_criteria",
]
