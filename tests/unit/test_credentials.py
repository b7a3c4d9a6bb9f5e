from __future__ import annotations

import pytest

from user_credentials.domain.auth.credentials import normalize_user_email
from user_credentials.domain.auth.roles import Role, parse_role


def test_normalize_user_email_trims_and_lowercases() -> None:
    assert normalize_user_email(email="  Alice@X.com \n") == "alice@x.com"


def test_normalize_user_email_rejects_blank_values() -> None:
    with pytest.raises(ValueError, match="email cannot be blank"):
        normalize_user_email(email="   ")


def test_role_enum_values_are_exact_user_and_admin() -> None:
    assert {member.value for member in Role} == {"user", "admin"}


def test_parse_role_accepts_members_and_strings() -> None:
    assert parse_role(role=Role.ADMIN) is Role.ADMIN
    assert parse_role(role="user") is Role.USER
    assert parse_role(role=" Admin ") is Role.ADMIN


def test_parse_role_rejects_unknown_values() -> None:
    with pytest.raises(ValueError, match="role must be one of"):
        parse_role(role="superuser")
