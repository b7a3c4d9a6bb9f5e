"""Bcrypt password hasher adapter."""

from __future__ import annotations

import re

import bcrypt

from user_credentials.application.ports.password_hasher_port import (
    HashingError,
    PasswordHasherPort,
    VerificationError,
)

DEFAULT_BCRYPT_ROUNDS = 12
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31

# bcrypt only consumes the first 72 bytes of its input.
_BCRYPT_MAX_PASSWORD_BYTES = 72
_BCRYPT_HASH_PATTERN = re.compile(r"^\$2[aby]\$(0[4-9]|[12][0-9]|3[01])\$[./A-Za-z0-9]{53}$")


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt.

    The cost factor is embedded in every digest, so changing `rounds` only affects
    new hashes; digests produced at any earlier cost keep verifying.
    """

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        if not MIN_BCRYPT_ROUNDS <= rounds <= MAX_BCRYPT_ROUNDS:
            raise ValueError(
                f"bcrypt rounds must be between {MIN_BCRYPT_ROUNDS} and {MAX_BCRYPT_ROUNDS}"
            )
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash_password(self, password: str) -> str:
        encoded = _encode_password(password)
        try:
            return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")
        except (ValueError, MemoryError) as exc:
            raise HashingError("bcrypt could not hash password") from exc

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        if not _BCRYPT_HASH_PATTERN.fullmatch(password_hash):
            raise VerificationError("stored password hash is not a valid bcrypt digest")
        try:
            return bcrypt.checkpw(_encode_password(password), password_hash.encode("ascii"))
        except ValueError as exc:
            raise VerificationError("stored password hash could not be parsed") from exc


def _encode_password(password: str) -> bytes:
    # surrogatepass keeps lone surrogates (valid in str, e.g. from JSON) hashable.
    return password.encode("utf-8", errors="surrogatepass")[:_BCRYPT_MAX_PASSWORD_BYTES]
