"""Business rules for managing users on top of a :class:`UserStore`."""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import DuplicateEmailError, UserNotFoundError, ValidationError
from .models import User, UserInput, is_valid_email
from .storage import UserStore

logger = logging.getLogger("usercrud.service")


class UserService:
    """Enforce email uniqueness and existence checks around user storage.

    The service keeps no state of its own. The uniqueness check before a write
    is a fast path that yields a readable error; the store rejects a duplicate
    that slips in between the check and the write.
    """

    def __init__(self, store: UserStore) -> None:
        self._store = store

    @property
    def store(self) -> UserStore:
        return self._store

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_all(self) -> List[User]:
        return self._store.find_all()

    def get_by_id(self, user_id: int) -> User:
        user = self._store.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self._store.find_by_email(email)

    def search_by_name(self, fragment: str) -> List[User]:
        return self._store.find_by_name_containing(fragment)

    def search(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> List[User]:
        """Return users matching every criterion that is not ``None``."""

        return self._store.search_by_criteria(name=name, email=email, phone=phone)

    def count(self) -> int:
        return self._store.count()

    def exists(self, user_id: int) -> bool:
        return self._store.exists_by_id(user_id)

    def email_exists(self, email: str) -> bool:
        return self._store.exists_by_email(email)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(self, payload: UserInput) -> User:
        messages = payload.violations()
        # A taken email is reported together with the shape violations.
        if messages and payload.email and is_valid_email(payload.email):
            if self._store.exists_by_email(payload.email):
                messages.append(str(DuplicateEmailError(payload.email)))
        _reject(messages)

        if self._store.exists_by_email(str(payload.email)):
            logger.warning("Rejected new user: email %s is already registered", payload.email)
            raise DuplicateEmailError(str(payload.email))

        user = self._store.save(payload.to_draft())
        logger.info("Created user %s <%s>", user.id, user.email)
        return user

    def update(self, user_id: int, payload: UserInput) -> User:
        """Replace every mutable field of an existing user.

        Optional fields left out of ``payload`` are cleared, not preserved.
        """

        _reject(payload.violations())
        existing = self.get_by_id(user_id)

        if existing.email != payload.email and self._store.exists_by_email(str(payload.email)):
            logger.warning(
                "Rejected update of user %s: email %s is already registered",
                user_id,
                payload.email,
            )
            raise DuplicateEmailError(str(payload.email))

        user = self._store.save(payload.to_draft(existing.id))
        logger.info("Updated user %s", user.id)
        return user

    def delete(self, user_id: int) -> bool:
        if not self._store.exists_by_id(user_id):
            raise UserNotFoundError(user_id)

        if not self._store.delete_by_id(user_id):
            # Removed concurrently between the check and the delete.
            raise UserNotFoundError(user_id)
        logger.info("Deleted user %s", user_id)
        return True


def _reject(messages: List[str]) -> None:
    if messages:
        logger.warning("Rejected user payload: %s", "; ".join(messages))
        raise ValidationError(messages)


__all__ = ["UserService"]
