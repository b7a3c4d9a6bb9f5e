"""Role values persisted on user accounts."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Allowed account roles."""

    USER = "user"
    ADMIN = "admin"


def parse_role(*, role: Role | str) -> Role:
    """Return one `Role` member or reject values outside the allowed set."""

    if isinstance(role, Role):
        return role
    try:
        return Role(role.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in Role)
        raise ValueError(f"role must be one of: {allowed}") from exc
