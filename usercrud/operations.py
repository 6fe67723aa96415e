"""Named queries and mutations exposed by the API, with their argument checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Callable, Dict, List, Mapping, Optional

from pydantic import Field, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ArgumentError
from .models import UserInput
from .service import UserService

QUERY = "query"
MUTATION = "mutation"

# Ids are SQLite INTEGER values.
_USER_ID = TypeAdapter(Annotated[int, Field(ge=-(2**63), le=2**63 - 1)])
_TEXT = TypeAdapter(Optional[StrictStr])

Arguments = Mapping[str, object]


def _require(arguments: Arguments, key: str) -> object:
    value = arguments.get(key)
    if value is None:
        raise ArgumentError(f"'{key}' is required")
    return value


def _user_id(arguments: Arguments) -> int:
    value = _require(arguments, "id")
    if isinstance(value, bool):
        raise ArgumentError("'id' must be an integer")
    try:
        return _USER_ID.validate_python(value)
    except PydanticValidationError as exc:
        raise ArgumentError("'id' must be a 64-bit integer") from exc


def _optional_string(arguments: Arguments, key: str) -> Optional[str]:
    try:
        return _TEXT.validate_python(arguments.get(key))
    except PydanticValidationError as exc:
        raise ArgumentError(f"'{key}' must be a string") from exc


def _string(arguments: Arguments, key: str) -> str:
    _require(arguments, key)
    return str(_optional_string(arguments, key))


def _user_input(arguments: Arguments) -> UserInput:
    raw = _require(arguments, "input")
    if not isinstance(raw, Mapping):
        raise ArgumentError("'input' must be an object")

    try:
        return UserInput.model_validate(dict(raw))
    except PydanticValidationError as exc:
        raise ArgumentError(_describe_input_errors(exc)) from exc


def _describe_input_errors(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    unknown = sorted(str(error["loc"][0]) for error in errors if error["type"] == "extra_forbidden")
    if unknown:
        return f"unknown input fields: {', '.join(unknown)}"
    return f"'input.{errors[0]['loc'][0]}' must be a string"


@dataclass(frozen=True)
class Operation:
    """An operation callers can invoke by name."""

    name: str
    kind: str
    resolve: Callable[[UserService, Arguments], object]


_OPERATIONS: List[Operation] = [
    Operation("getAllUsers", QUERY, lambda service, _: service.list_all()),
    Operation("getUserById", QUERY, lambda service, args: service.get_by_id(_user_id(args))),
    Operation("getUserByEmail", QUERY, lambda service, args: service.get_by_email(_string(args, "email"))),
    Operation(
        "searchUsersByName",
        QUERY,
        lambda service, args: service.search_by_name(_string(args, "name")),
    ),
    Operation(
        "searchUsers",
        QUERY,
        lambda service, args: service.search(
            name=_optional_string(args, "name"),
            email=_optional_string(args, "email"),
            phone=_optional_string(args, "phone"),
        ),
    ),
    Operation("getUserCount", QUERY, lambda service, _: service.count()),
    Operation("userExists", QUERY, lambda service, args: service.exists(_user_id(args))),
    Operation("emailExists", QUERY, lambda service, args: service.email_exists(_string(args, "email"))),
    Operation("createUser", MUTATION, lambda service, args: service.create(_user_input(args))),
    Operation(
        "updateUser",
        MUTATION,
        lambda service, args: service.update(_user_id(args), _user_input(args)),
    ),
    Operation("deleteUser", MUTATION, lambda service, args: service.delete(_user_id(args))),
]

OPERATIONS: Dict[str, Operation] = {operation.name: operation for operation in _OPERATIONS}


def operation_names(kind: str) -> List[str]:
    return [operation.name for operation in _OPERATIONS if operation.kind == kind]


def run_operation(service: UserService, name: str, arguments: Arguments) -> object:
    """Check the arguments of operation ``name`` and invoke it on ``service``."""

    operation = OPERATIONS.get(name)
    if operation is None:
        raise ArgumentError(f"unknown operation '{name}'")
    return operation.resolve(service, arguments)


__all__ = [
    "MUTATION",
    "OPERATIONS",
    "Operation",
    "QUERY",
    "operation_names",
    "run_operation",
]
