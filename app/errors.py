"""Error taxonomy shared by the data-access and handler layers."""
from __future__ import annotations


class UserServiceError(RuntimeError):
    """Base class for failures raised by the user service."""


class EmptyUpdateError(UserServiceError):
    """Raised when an update patch does not carry any field to change."""

    def __init__(self, message: str = "empty update request") -> None:
        super().__init__(message)


class NotFoundError(UserServiceError):
    """Raised when the referenced user does not exist."""

    def __init__(self, lookup: str, value: str) -> None:
        super().__init__(f"user with {lookup} '{value}' not found")
        self.lookup = lookup
        self.value = value


class MalformedRequestError(UserServiceError):
    """Raised when a request body cannot be decoded into the expected shape."""


class StorageError(UserServiceError):
    """Raised when the database engine rejects a statement."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


__all__ = [
    "EmptyUpdateError",
    "MalformedRequestError",
    "NotFoundError",
    "StorageError",
    "UserServiceError",
]
