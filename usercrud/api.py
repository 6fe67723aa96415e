"""FastAPI application exposing the user directory queries and mutations."""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import anyio
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_serializer

from .config import ServiceSettings, load_settings, resolve_config_path
from .database import Database
from .errors import (
    ArgumentError,
    ErrorCategory,
    ErrorEntry,
    INTERNAL_ERROR_MESSAGE,
    to_error_entry,
)
from .models import User
from .operations import MUTATION, QUERY, operation_names, run_operation
from .seed import load_initial_users
from .service import UserService

logger = logging.getLogger("usercrud.api")

DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class OperationRequest(BaseModel):
    operation: str = Field(..., min_length=1, max_length=64)
    arguments: Optional[Dict[str, Any]] = None


class OperationCatalogue(BaseModel):
    queries: List[str]
    mutations: List[str]


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def _format_timestamp(self, value: datetime) -> str:
        return value.strftime(DATETIME_FORMAT)


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        address=user.address,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _serialize_result(result: object) -> object:
    if isinstance(result, User):
        return user_to_response(result).model_dump(mode="json")
    if isinstance(result, list):
        return [_serialize_result(item) for item in result]
    return result


def _error_payload(name: Optional[str], entry: ErrorEntry) -> Dict[str, object]:
    return {
        "data": {name: None} if name is not None else None,
        "errors": [entry.to_dict()],
    }


def _entry_for(exc: Exception, path: Sequence[str]) -> ErrorEntry:
    try:
        return to_error_entry(exc, path)
    except TypeError:
        logger.exception("No error category registered for %s", type(exc).__name__)
        return ErrorEntry(ErrorCategory.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, tuple(path))


def execute_operation(
    service: UserService,
    name: str,
    arguments: Optional[Dict[str, Any]] = None,
) -> Dict[str, object]:
    """Run operation ``name`` and return the response body for the caller.

    Failures never escape: each one becomes a single error entry.
    """

    try:
        result = run_operation(service, name, arguments or {})
    except Exception as exc:
        entry = _entry_for(exc, (name,))
        if entry.category is ErrorCategory.INTERNAL_ERROR:
            logger.exception("Operation %s failed unexpectedly", name)
        else:
            logger.info("Operation %s rejected (%s): %s", name, entry.category.value, entry.message)
        return _error_payload(name, entry)

    return {"data": {name: _serialize_result(result)}}


def create_app(
    *,
    service: UserService | None = None,
    settings: ServiceSettings | None = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings(resolve_config_path(os.getenv("USERCRUD_CONFIG")))

    if service is None:
        database = Database(settings.database_path)
        database.initialize()
        service = UserService(database)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.seed_on_startup:
            await anyio.to_thread.run_sync(load_initial_users, service.store)
        yield

    app = FastAPI(
        title="User Directory",
        description="Query and mutation API for managing user records",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.settings = settings

    def get_service() -> UserService:
        return service

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/v1/operations", response_model=OperationCatalogue)
    async def list_operations() -> OperationCatalogue:
        return OperationCatalogue(queries=operation_names(QUERY), mutations=operation_names(MUTATION))

    @app.post("/v1/operations")
    async def run(request: OperationRequest, svc: UserService = Depends(get_service)) -> JSONResponse:
        payload = await anyio.to_thread.run_sync(
            execute_operation, svc, request.operation, request.arguments
        )
        return JSONResponse(content=payload)

    @app.exception_handler(RequestValidationError)
    async def handle_malformed_request(_: Request, exc: RequestValidationError):
        logger.info("Malformed operation request: %s", exc.errors())
        entry = to_error_entry(ArgumentError("malformed operation request"), ())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(None, entry))

    return app


__all__ = ["UserResponse", "create_app", "execute_operation", "user_to_response"]
