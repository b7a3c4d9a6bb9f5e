"""Application service for registering new user accounts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from user_credentials.application.ports.password_hasher_port import (
    HashingError,
    PasswordHasherPort,
)
from user_credentials.application.ports.user_repository_port import (
    PersistenceError,
    UserCreateInput,
    UserEmailConflictError,
    UserProjection,
    UserRepositoryPort,
)
from user_credentials.domain.auth.credentials import normalize_user_email
from user_credentials.domain.auth.roles import Role, parse_role

logger = logging.getLogger(__name__)


class DuplicateUserError(ValueError):
    """Raised when registration targets an email that already belongs to a user."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"user already exists: {email}")
        self.email = email


class RegistrationOutcome(StrEnum):
    """Supported registration outcomes."""

    SUCCESS = "success"
    DUPLICATE_EMAIL = "duplicate_email"


@dataclass(frozen=True)
class RegistrationResult:
    """Registration result model."""

    outcome: RegistrationOutcome
    email: str
    user: UserProjection | None = None

    def unwrap(self) -> UserProjection:
        """Return created user or raise the typed error for this outcome."""

        if self.outcome is RegistrationOutcome.DUPLICATE_EMAIL:
            raise DuplicateUserError(email=self.email)
        assert self.user is not None
        return self.user


class UserRegistrationService:
    """Create user accounts with hashed credentials and unique emails."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        logger: logging.Logger = logger,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._logger = logger

    async def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: Role | str = Role.USER,
    ) -> RegistrationResult:
        """Register one user; the store's unique constraint decides email conflicts."""

        normalized_email = normalize_user_email(email=email)
        resolved_role = parse_role(role=role)

        try:
            existing = await self._users.get_by_email(email=normalized_email)
        except PersistenceError:
            self._log_failure(email=normalized_email, reason="persistence_error")
            raise
        if existing is not None:
            self._log_failure(email=normalized_email, reason="duplicate_email")
            return RegistrationResult(
                outcome=RegistrationOutcome.DUPLICATE_EMAIL,
                email=normalized_email,
            )

        try:
            password_hash = await asyncio.to_thread(self._password_hasher.hash_password, password)
        except HashingError:
            self._log_failure(email=normalized_email, reason="hashing_error")
            raise

        try:
            created = await self._users.create_user(
                UserCreateInput(
                    name=name,
                    email=normalized_email,
                    password_hash=password_hash,
                    role=resolved_role,
                )
            )
        except UserEmailConflictError:
            self._log_failure(email=normalized_email, reason="duplicate_email_on_insert")
            return RegistrationResult(
                outcome=RegistrationOutcome.DUPLICATE_EMAIL,
                email=normalized_email,
            )
        except PersistenceError:
            self._log_failure(email=normalized_email, reason="persistence_error")
            raise

        self._logger.info(
            "user_registered email=%s user_id=%s role=%s",
            created.email,
            created.user_id,
            created.role.value,
        )
        return RegistrationResult(
            outcome=RegistrationOutcome.SUCCESS,
            email=created.email,
            user=created.to_projection(),
        )

    def _log_failure(self, *, email: str, reason: str) -> None:
        self._logger.error("user_registration_failed email=%s reason=%s", email, reason)
