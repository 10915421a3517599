"""FastAPI application exposing the ``/users`` resource."""
from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from .database import Database, resolve_database_path
from .envelope import status_for_error, write_bad_request, write_error, write_ok
from .errors import MalformedRequestError, UserServiceError
from .models import UserCreationRequest, UserUpdatePatch

logger = logging.getLogger("userservice.api")


class CreateUserRequest(BaseModel):
    """Creation body. Explicit ``null`` for the optional fields means their default."""

    model_config = ConfigDict(populate_by_name=True)

    email: StrictStr
    email_visibility: Optional[StrictBool] = Field(default=None, alias="emailVisibility")
    name: Optional[StrictStr] = None

    def to_request(self) -> UserCreationRequest:
        return UserCreationRequest(
            email=self.email,
            email_visibility=bool(self.email_visibility),
            name=self.name or "",
        )


class UpdateUserRequest(BaseModel):
    """Sparse patch body. Omitted keys and explicit ``null`` leave a field unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[StrictStr] = None
    email_visibility: Optional[StrictBool] = Field(default=None, alias="emailVisibility")
    name: Optional[StrictStr] = None

    def to_patch(self) -> UserUpdatePatch:
        return UserUpdatePatch(
            email=self.email,
            email_visibility=self.email_visibility,
            name=self.name,
        )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "invalid request body"))
    return f"{location}: {message}" if location else message


def create_app(
    *,
    database: Database | None = None,
    initialize_database: bool = False,
) -> FastAPI:
    if database is None:
        database = Database(resolve_database_path(os.getenv("USERS_DB_PATH")))
        database.initialize()
    elif initialize_database:
        database.initialize()

    app = FastAPI(
        title="User Directory API",
        description="CRUD endpoints for user records stored in SQLite",
        version="1.0.0",
    )
    app.state.database = database

    def get_db() -> Database:
        return database

    def _failure(context: str, exc: UserServiceError) -> JSONResponse:
        if status_for_error(exc) >= 500:
            logger.warning("%s: %s", context, exc)
        return write_error(context, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        error = MalformedRequestError(_describe_validation_error(exc))
        return write_bad_request(f"bad request: {error}")

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/users")
    def list_users(db: Database = Depends(get_db)) -> JSONResponse:
        try:
            users = db.list_users()
        except UserServiceError as exc:
            return _failure("error getting users", exc)
        return write_ok(data=[user.to_dict() for user in users])

    @app.get("/users/{user_id}")
    def read_user(user_id: str, db: Database = Depends(get_db)) -> JSONResponse:
        try:
            user = db.get_user_by_id(user_id)
        except UserServiceError as exc:
            return _failure("error getting user", exc)
        return write_ok(data=user.to_dict())

    @app.post("/users")
    def create_user(payload: CreateUserRequest, db: Database = Depends(get_db)) -> JSONResponse:
        try:
            user = db.create_user(payload.to_request())
        except UserServiceError as exc:
            return _failure("error creating new user", exc)
        return write_ok(data=user.to_dict())

    @app.patch("/users/{user_id}")
    def update_user(
        user_id: str,
        payload: UpdateUserRequest,
        db: Database = Depends(get_db),
    ) -> JSONResponse:
        try:
            user = db.update_user_by_id(user_id, payload.to_patch())
        except UserServiceError as exc:
            return _failure("error updating user", exc)
        return write_ok(data=user.to_dict())

    @app.delete("/users/{user_id}")
    def delete_user(user_id: str, db: Database = Depends(get_db)) -> JSONResponse:
        try:
            db.delete_user_by_id(user_id)
        except UserServiceError as exc:
            return _failure("error deleting user", exc)
        return write_ok()

    return app


__all__ = ["CreateUserRequest", "UpdateUserRequest", "create_app"]
