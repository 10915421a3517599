"""Domain models for the user directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class User:
    """Represents a row of the ``users`` table."""

    id: str
    email: str
    email_visibility: bool
    verified: bool
    name: str
    avatar: str
    created: str
    updated: str

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON representation using the public field names."""

        return {
            "id": self.id,
            "email": self.email,
            "emailVisibility": self.email_visibility,
            "verified": self.verified,
            "name": self.name,
            "avatar": self.avatar,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass(frozen=True)
class UserCreationRequest:
    email: str
    email_visibility: bool = False
    name: str = ""


@dataclass(frozen=True)
class UserUpdatePatch:
    """Sparse update for a user.

    ``None`` means the field was not provided and must be left unchanged.
    Any other value, including ``""`` and ``False``, is written as-is.
    """

    email: Optional[str] = None
    email_visibility: Optional[bool] = None
    name: Optional[str] = None

    def is_empty(self) -> bool:
        return self.email is None and self.email_visibility is None and self.name is None


__all__ = ["User", "UserCreationRequest", "UserUpdatePatch"]
