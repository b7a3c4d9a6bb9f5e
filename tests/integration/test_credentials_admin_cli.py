from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from apps.credentials_admin.main import main
from user_credentials.config.settings import load_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def _set_runtime_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.delenv("BOOTSTRAP_ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("BOOTSTRAP_ADMIN_NAME", raising=False)
    monkeypatch.delenv("BOOTSTRAP_ADMIN_PASSWORD", raising=False)
    monkeypatch.delenv("BOOTSTRAP_ADMIN_PASSWORD_FILE", raising=False)


def _register_argv(password_file: str) -> list[str]:
    return [
        "register",
        "--name",
        "Alice",
        "--email",
        "alice@x.com",
        "--password-file",
        password_file,
    ]


def _password_file(tmp_path: Path, name: str, password: str) -> str:
    path = tmp_path / name
    path.write_text(f"{password}\n", encoding="utf-8")
    return str(path)


def test_register_and_authenticate_commands_print_projection(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _set_runtime_env(monkeypatch, tmp_path)
    password_file = _password_file(tmp_path, "alice-password", "secret123")

    register_status = main(_register_argv(password_file))
    registered = json.loads(capsys.readouterr().out)
    auth_status = main(["authenticate", "--email", "alice@x.com", "--password-file", password_file])
    authenticated = json.loads(capsys.readouterr().out)

    assert register_status == 0
    assert auth_status == 0
    assert set(registered) == {"id", "name", "email", "role", "created_at"}
    assert registered["role"] == "user"
    assert authenticated == registered


def test_failed_commands_exit_nonzero_with_generic_messages(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _set_runtime_env(monkeypatch, tmp_path)
    password_file = _password_file(tmp_path, "alice-password", "secret123")
    wrong_file = _password_file(tmp_path, "wrong-password", "wrongpass")
    main(_register_argv(password_file))
    capsys.readouterr()

    duplicate_status = main(_register_argv(password_file))
    duplicate_err = capsys.readouterr().err
    wrong_status = main(["authenticate", "--email", "alice@x.com", "--password-file", wrong_file])
    wrong_err = capsys.readouterr().err
    unknown_status = main(["authenticate", "--email", "bob@x.com", "--password-file", wrong_file])
    unknown_err = capsys.readouterr().err

    assert duplicate_status == 1
    assert duplicate_err.splitlines()[-1] == "user already exists"
    assert wrong_status == unknown_status == 1
    assert wrong_err.splitlines()[-1] == "invalid email or password"
    assert unknown_err.splitlines()[-1] == "invalid email or password"


@pytest.mark.parametrize("command", ["register", "authenticate"])
def test_unreadable_password_file_exits_nonzero_with_message(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    command: str,
) -> None:
    _set_runtime_env(monkeypatch, tmp_path)
    missing = str(tmp_path / "missing-password")
    argv = _register_argv(missing) if command == "register" else [
        "authenticate",
        "--email",
        "alice@x.com",
        "--password-file",
        missing,
    ]

    status = main(argv)

    assert status == 1
    assert capsys.readouterr().err.splitlines()[-1] == "failed to read password file"


def test_bootstrap_admin_command_uses_env_settings(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _set_runtime_env(monkeypatch, tmp_path)
    monkeypatch.setenv("BOOTSTRAP_ADMIN_EMAIL", "admin@x.com")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "admin-pw")

    first_status = main(["bootstrap-admin"])
    first_out = capsys.readouterr().out
    second_status = main(["bootstrap-admin"])
    second_out = capsys.readouterr().out

    assert first_status == second_status == 0
    assert first_out.strip() == "created"
    assert second_out.strip() == "skipped_users_present"


def test_bootstrap_admin_command_fails_when_not_configured(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _set_runtime_env(monkeypatch, tmp_path)

    status = main(["bootstrap-admin"])

    assert status == 1
    assert "not configured" in capsys.readouterr().err


def test_init_db_creates_schema(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _set_runtime_env(monkeypatch, tmp_path)

    assert main(["init-db"]) == 0
    assert (tmp_path / "cli.db").exists()
