"""Port for password hashing and verification."""

from __future__ import annotations

from typing import Protocol


class HashingError(RuntimeError):
    """Raised when the hashing primitive cannot produce a digest."""


class VerificationError(ValueError):
    """Raised when a stored password hash is structurally malformed."""


class PasswordHasherPort(Protocol):
    """Password hashing/verification contract.

    `hash_password` must salt every call, so hashing one password twice yields two
    different digests that both verify. `verify_password` returns False for a wrong
    password and raises `VerificationError` only for unparseable stored hashes.
    """

    def hash_password(self, password: str) -> str:
        """Hash plaintext password for storage."""

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Verify plaintext password against stored hash."""
