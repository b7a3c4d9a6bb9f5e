"""credentials-admin entrypoint for operator-driven user management."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from user_credentials.application.services.admin_bootstrap import (
    AdminBootstrapConfigError,
    ensure_initial_admin_user,
    resolve_admin_bootstrap_config,
)
from user_credentials.application.services.auth_service import AuthOutcome, AuthService
from user_credentials.application.services.user_registration_service import (
    RegistrationOutcome,
    UserRegistrationService,
)
from user_credentials.config.settings import Settings, load_settings
from user_credentials.domain.auth.roles import Role
from user_credentials.infrastructure.db.session import create_engine, create_schema
from user_credentials.infrastructure.db.user_repository import SqlAlchemyUserRepository
from user_credentials.infrastructure.logging import configure_logging
from user_credentials.infrastructure.security.password_hasher import (
    DEFAULT_BCRYPT_ROUNDS,
    BcryptPasswordHasher,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialServices:
    """Wired credential services sharing one repository and hasher."""

    users: SqlAlchemyUserRepository
    registration: UserRegistrationService
    auth: AuthService


def build_credential_services(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> CredentialServices:
    """Build registration and authentication services with SQLAlchemy-backed dependencies."""

    users = SqlAlchemyUserRepository(session_factory)
    password_hasher = BcryptPasswordHasher(rounds=bcrypt_rounds)
    return CredentialServices(
        users=users,
        registration=UserRegistrationService(users=users, password_hasher=password_hasher),
        auth=AuthService(users=users, password_hasher=password_hasher),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="credentials-admin")
    subcommands = parser.add_subparsers(dest="command", required=True)

    subcommands.add_parser("init-db", help="create credential tables")
    subcommands.add_parser("bootstrap-admin", help="create the first admin from env settings")

    register = subcommands.add_parser("register", help="register one user")
    register.add_argument("--name", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--role", choices=[role.value for role in Role], default=Role.USER.value)
    register.add_argument("--password-file", default=None)

    authenticate = subcommands.add_parser("authenticate", help="check one user's credentials")
    authenticate.add_argument("--email", required=True)
    authenticate.add_argument("--password-file", default=None)
    return parser


def _read_password(password_file: str | None) -> str:
    if password_file is None:
        return getpass.getpass("Password: ")
    return Path(password_file).read_text(encoding="utf-8").rstrip("\r\n")


async def run_command(args: argparse.Namespace, *, settings: Settings) -> int:
    """Execute one parsed command and return the process exit status."""

    await create_schema(settings.database_url)
    if args.command == "init-db":
        logger.info("credential_schema_ready")
        return 0

    engine = create_engine(settings.database_url)
    services = build_credential_services(
        async_sessionmaker(engine, expire_on_commit=False),
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    try:
        return await _dispatch(args, settings=settings, services=services)
    finally:
        await engine.dispose()


async def _dispatch(
    args: argparse.Namespace,
    *,
    settings: Settings,
    services: CredentialServices,
) -> int:
    if args.command == "bootstrap-admin":
        try:
            config = resolve_admin_bootstrap_config(
                email=settings.bootstrap_admin_email,
                name=settings.bootstrap_admin_name,
                password=settings.bootstrap_admin_password,
                password_file=settings.bootstrap_admin_password_file,
            )
        except AdminBootstrapConfigError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        if config is None:
            print("bootstrap admin is not configured", file=sys.stderr)
            return 1
        bootstrap = await ensure_initial_admin_user(
            users=services.users,
            registration=services.registration,
            config=config,
        )
        print(bootstrap.outcome.value)
        return 0

    try:
        password = _read_password(args.password_file)
    except OSError:
        print("failed to read password file", file=sys.stderr)
        return 1
    if args.command == "register":
        registration = await services.registration.register(
            name=args.name,
            email=args.email,
            password=password,
            role=args.role,
        )
        if registration.outcome is RegistrationOutcome.DUPLICATE_EMAIL:
            print("user already exists", file=sys.stderr)
            return 1
        print(json.dumps(registration.unwrap().to_dict()))
        return 0

    auth = await services.auth.authenticate(email=args.email, password=password)
    if auth.outcome is AuthOutcome.INVALID_CREDENTIALS:
        print("invalid email or password", file=sys.stderr)
        return 1
    print(json.dumps(auth.unwrap().to_dict()))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(level=settings.log_level)
    return asyncio.run(run_command(args, settings=settings))


if __name__ == "__main__":
    sys.exit(main())
