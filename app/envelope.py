"""Uniform ``{success, message, data}`` response envelope."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import status
from fastapi.responses import JSONResponse

from .errors import EmptyUpdateError, MalformedRequestError, StorageError, UserServiceError


def build_envelope(success: bool, message: str = "", data: Any = None) -> Dict[str, Any]:
    """Return the envelope payload, leaving out an empty message and absent data."""

    payload: Dict[str, Any] = {"success": success}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    return payload


def write_ok(message: str = "", data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content=build_envelope(True, message, data))


def write_bad_request(message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=build_envelope(False, message, data),
    )


def write_internal_server_error(message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=build_envelope(False, message, data),
    )


def status_for_error(exc: UserServiceError) -> int:
    """Map an error to its HTTP status: caller mistakes are 400, the rest 500."""

    if isinstance(exc, (MalformedRequestError, EmptyUpdateError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def write_error(context: str, exc: UserServiceError) -> JSONResponse:
    """Render ``exc`` as a failure envelope prefixed with the handler context."""

    # Storage errors already name the operation that failed.
    message = str(exc) if isinstance(exc, StorageError) else f"{context}: {exc}"
    if status_for_error(exc) == status.HTTP_400_BAD_REQUEST:
        return write_bad_request(message)
    return write_internal_server_error(message)


__all__ = [
    "build_envelope",
    "status_for_error",
    "write_bad_request",
    "write_error",
    "write_internal_server_error",
    "write_ok",
]
