"""Bootstrap helper for creating an initial admin account at startup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from user_credentials.application.ports.user_repository_port import UserRepositoryPort
from user_credentials.application.services.user_registration_service import (
    RegistrationOutcome,
    UserRegistrationService,
)
from user_credentials.domain.auth.credentials import normalize_user_email
from user_credentials.domain.auth.roles import Role

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Administrator"


class AdminBootstrapConfigError(ValueError):
    """Raised when bootstrap-admin environment configuration is invalid."""


@dataclass(frozen=True)
class AdminBootstrapConfig:
    """Runtime configuration for one-time admin bootstrap."""

    email: str
    name: str
    password: str = field(repr=False)


class AdminBootstrapOutcome(StrEnum):
    """Outcome states for initial admin bootstrap execution."""

    CREATED = "created"
    SKIPPED_USERS_PRESENT = "skipped_users_present"
    SKIPPED_CONCURRENT_INSERT = "skipped_concurrent_insert"


@dataclass(frozen=True)
class AdminBootstrapResult:
    """Result model for one initial-admin bootstrap attempt."""

    outcome: AdminBootstrapOutcome
    email: str


def resolve_admin_bootstrap_config(
    *,
    email: str | None,
    password: str | None,
    password_file: str | None,
    name: str | None = None,
) -> AdminBootstrapConfig | None:
    """Build the bootstrap-admin config from settings values.

    Returns None when no bootstrap variable is set. A partially configured admin
    (password without email, two password sources, blank values) is rejected so a
    typo in deployment env never silently skips or half-creates the first admin.
    """

    if email is None:
        if password is None and password_file is None:
            return None
        raise AdminBootstrapConfigError(
            "BOOTSTRAP_ADMIN_EMAIL is required when bootstrap-admin variables are set"
        )

    try:
        admin_email = normalize_user_email(email=email)
    except ValueError as exc:
        raise AdminBootstrapConfigError("BOOTSTRAP_ADMIN_EMAIL cannot be blank") from exc

    admin_password = _admin_password_from_sources(password=password, password_file=password_file)
    if not admin_password.strip():
        raise AdminBootstrapConfigError("bootstrap admin password cannot be blank")

    return AdminBootstrapConfig(
        email=admin_email,
        name=(name or "").strip() or DEFAULT_ADMIN_NAME,
        password=admin_password,
    )


def _admin_password_from_sources(*, password: str | None, password_file: str | None) -> str:
    """Return the admin password from exactly one of the inline or file sources."""

    match (password, password_file):
        case (None, None):
            raise AdminBootstrapConfigError(
                "set BOOTSTRAP_ADMIN_PASSWORD or BOOTSTRAP_ADMIN_PASSWORD_FILE "
                "when BOOTSTRAP_ADMIN_EMAIL is set"
            )
        case (str(), str()):
            raise AdminBootstrapConfigError(
                "set only one of BOOTSTRAP_ADMIN_PASSWORD or BOOTSTRAP_ADMIN_PASSWORD_FILE"
            )
        case (str() as inline, None):
            return inline

    assert password_file is not None
    try:
        # A trailing newline in the secret file is not part of the password.
        return Path(password_file).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise AdminBootstrapConfigError("failed to read BOOTSTRAP_ADMIN_PASSWORD_FILE") from exc


async def ensure_initial_admin_user(
    *,
    users: UserRepositoryPort,
    registration: UserRegistrationService,
    config: AdminBootstrapConfig,
) -> AdminBootstrapResult:
    """Create initial `admin` user when the user store is empty, otherwise skip."""

    if await users.count_users() > 0:
        logger.info("admin_bootstrap_skipped reason=users_present email=%s", config.email)
        return AdminBootstrapResult(
            outcome=AdminBootstrapOutcome.SKIPPED_USERS_PRESENT,
            email=config.email,
        )

    result = await registration.register(
        name=config.name,
        email=config.email,
        password=config.password,
        role=Role.ADMIN,
    )
    if result.outcome is RegistrationOutcome.DUPLICATE_EMAIL:
        logger.info("admin_bootstrap_skipped reason=concurrent_insert email=%s", config.email)
        return AdminBootstrapResult(
            outcome=AdminBootstrapOutcome.SKIPPED_CONCURRENT_INSERT,
            email=config.email,
        )

    logger.info("admin_bootstrap_created email=%s", config.email)
    return AdminBootstrapResult(outcome=AdminBootstrapOutcome.CREATED, email=config.email)
