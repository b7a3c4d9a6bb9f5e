"""SQLAlchemy adapter for user lookup and insert queries."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from user_credentials.application.ports.user_repository_port import (
    PersistenceError,
    UserCreateInput,
    UserEmailConflictError,
    UserRecord,
    UserRepositoryPort,
)
from user_credentials.domain.auth.roles import Role
from user_credentials.infrastructure.db.metadata import users

_USER_COLUMNS = (
    users.c.id,
    users.c.name,
    users.c.email,
    users.c.password_hash,
    users.c.role,
    users.c.created_at,
)


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions.

    Driver failures are re-raised as `PersistenceError` without their original
    message, because statement errors can carry bound values such as password hashes.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by normalized email or None."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.email == email).limit(1)

        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError("user lookup failed") from exc

        row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one user in a single transaction and return the persisted row."""

        statement = (
            sa.insert(users)
            .values(
                id=uuid4(),
                name=payload.name,
                email=payload.email,
                password_hash=payload.password_hash,
                role=payload.role.value,
            )
            .returning(*_USER_COLUMNS)
        )

        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(statement)
                row = result.mappings().one()
        except IntegrityError as exc:
            raise UserEmailConflictError(email=payload.email) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError("user insert failed") from exc

        return _to_user_record(row)

    async def count_users(self) -> int:
        """Return the total number of persisted users."""

        statement = sa.select(sa.func.count()).select_from(users)
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError("user count failed") from exc
        return int(result.scalar_one())


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    raw_user_id = row["id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    return UserRecord(
        user_id=user_id,
        name=cast(str, row["name"]),
        email=cast(str, row["email"]),
        password_hash=cast(str, row["password_hash"]),
        role=Role(cast(str, row["role"])),
        created_at=_as_utc(cast(datetime, row["created_at"])),
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite returns CURRENT_TIMESTAMP (UTC) without an offset.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
