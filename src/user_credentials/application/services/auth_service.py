"""Application authentication service for credential verification."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from user_credentials.application.ports.password_hasher_port import (
    PasswordHasherPort,
    VerificationError,
)
from user_credentials.application.ports.user_repository_port import (
    PersistenceError,
    UserProjection,
    UserRecord,
    UserRepositoryPort,
)
from user_credentials.domain.auth.credentials import normalize_user_email

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS_MESSAGE = "invalid email or password"
_DUMMY_PASSWORD = "dummy-password-for-unknown-email"


class InvalidCredentialsError(PermissionError):
    """Raised for any failed login, whether the email or the password was wrong."""

    def __init__(self) -> None:
        super().__init__(_INVALID_CREDENTIALS_MESSAGE)


class AuthOutcome(StrEnum):
    """Supported authentication outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class AuthResult:
    """Authentication result model."""

    outcome: AuthOutcome
    user: UserProjection | None = None

    def unwrap(self) -> UserProjection:
        """Return authenticated user or raise `InvalidCredentialsError`."""

        if self.outcome is AuthOutcome.INVALID_CREDENTIALS:
            raise InvalidCredentialsError()
        assert self.user is not None
        return self.user


class AuthService:
    """Authenticate credentials against stored user records."""

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
        self._dummy_password_hash: str | None = None

    async def authenticate(self, *, email: str, password: str) -> AuthResult:
        """Authenticate user credentials without revealing which factor failed.

        A blank email cannot match any stored user and fails like an unknown one.
        """

        user: UserRecord | None = None
        try:
            normalized_email = normalize_user_email(email=email)
        except ValueError:
            normalized_email = ""
        if normalized_email:
            try:
                user = await self._users.get_by_email(email=normalized_email)
            except PersistenceError:
                self._log_failure(email=normalized_email, reason="persistence_error")
                raise

        if user is None:
            # Spend one verification so unknown emails cost as much as wrong passwords.
            dummy_hash = await self._get_dummy_password_hash()
            await asyncio.to_thread(
                self._password_hasher.verify_password,
                password=password,
                password_hash=dummy_hash,
            )
            self._log_failure(email=normalized_email, reason="invalid_credentials")
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        try:
            is_valid = await asyncio.to_thread(
                self._password_hasher.verify_password,
                password=password,
                password_hash=user.password_hash,
            )
        except VerificationError:
            self._logger.error(
                "login_failed email=%s user_id=%s reason=corrupt_password_hash",
                normalized_email,
                user.user_id,
            )
            raise
        if not is_valid:
            self._log_failure(email=normalized_email, reason="invalid_credentials")
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        self._logger.info("login_succeeded email=%s user_id=%s", user.email, user.user_id)
        return AuthResult(outcome=AuthOutcome.SUCCESS, user=user.to_projection())

    async def _get_dummy_password_hash(self) -> str:
        if self._dummy_password_hash is None:
            self._dummy_password_hash = await asyncio.to_thread(
                self._password_hasher.hash_password,
                _DUMMY_PASSWORD,
            )
        return self._dummy_password_hash

    def _log_failure(self, *, email: str, reason: str) -> None:
        self._logger.error("login_failed email=%s reason=%s", email, reason)
