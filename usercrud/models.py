"""Domain models for the user directory."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PHONE_MAX_LENGTH = 15
ADDRESS_MAX_LENGTH = 500

_EMAIL = TypeAdapter(EmailStr)
_LENGTH_ERRORS = {"string_too_short", "string_too_long"}


@dataclass(frozen=True)
class User:
    """Represents a user record stored in the directory."""

    id: int
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserDraft:
    """Field values handed to storage when a user is created or replaced."""

    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    id: Optional[int] = None


class UserFields(BaseModel):
    """Field rules a user payload has to satisfy before it is stored."""

    name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=PHONE_MAX_LENGTH)
    address: Optional[str] = Field(default=None, max_length=ADDRESS_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def _reject_blank_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class UserInput(BaseModel):
    """Unvalidated payload for creating or updating a user.

    Only the shape is enforced on construction: the four known fields, each a
    string or ``None``. The field rules are checked by :meth:`violations`.
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    def violations(self) -> List[str]:
        """Return a message for every rule the payload breaks, in field order."""

        try:
            UserFields.model_validate(self.model_dump())
        except PydanticValidationError as exc:
            failed = {str(error["loc"][0]): error["type"] for error in exc.errors()}
        else:
            return []

        messages: List[str] = []
        if "name" in failed:
            if _is_blank(self.name):
                messages.append("Name is required")
            if failed["name"] in _LENGTH_ERRORS:
                messages.append(
                    f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
                )
        if "email" in failed:
            messages.append("Email is required" if _is_blank(self.email) else "Email must be valid")
        if "phone" in failed:
            messages.append(f"Phone number cannot exceed {PHONE_MAX_LENGTH} characters")
        if "address" in failed:
            messages.append(f"Address cannot exceed {ADDRESS_MAX_LENGTH} characters")
        return messages

    def to_draft(self, user_id: Optional[int] = None) -> UserDraft:
        return UserDraft(
            id=user_id,
            name=str(self.name),
            email=str(self.email),
            phone=self.phone,
            address=self.address,
        )


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def is_valid_email(value: str) -> bool:
    try:
        _EMAIL.validate_python(value)
    except PydanticValidationError:
        return False
    return True


__all__ = [
    "ADDRESS_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "NAME_MIN_LENGTH",
    "PHONE_MAX_LENGTH",
    "User",
    "UserDraft",
    "UserFields",
    "UserInput",
    "is_valid_email",
]
