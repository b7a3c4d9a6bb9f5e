"""Port for user persistence used by registration and authentication services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from user_credentials.domain.auth.roles import Role


class PersistenceError(RuntimeError):
    """Raised when the user store is unreachable or rejects a write."""


class UserEmailConflictError(LookupError):
    """Raised by the store when an insert violates the unique email constraint."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"user email already exists: {email}")
        self.email = email


@dataclass(frozen=True)
class UserProjection:
    """Caller-facing user view without credential material."""

    user_id: UUID
    name: str
    email: str
    role: Role
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.user_id),
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class UserRecord:
    """User persistence model."""

    user_id: UUID
    name: str
    email: str
    password_hash: str = field(repr=False)
    role: Role
    created_at: datetime

    def to_projection(self) -> UserProjection:
        return UserProjection(
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            role=self.role,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class UserCreateInput:
    """Payload for inserting one user row; email is already normalized."""

    name: str
    email: str
    password_hash: str = field(repr=False)
    role: Role = Role.USER


class UserRepositoryPort(Protocol):
    """User repository contract."""

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by normalized email or None."""

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one user atomically; raise `UserEmailConflictError` on duplicate email."""

    async def count_users(self) -> int:
        """Return the total number of persisted users."""
