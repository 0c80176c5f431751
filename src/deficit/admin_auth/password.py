"""Admin password hashing (argon2id)."""

from __future__ import annotations

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

# Dashboard logins are rare; a 64 MB memory cost is affordable per attempt.
_hasher = PasswordHasher(time_cost=2, memory_cost=64 * 1024, parallelism=1, type=Type.ID)


class PasswordTooShortError(ValueError):
    """A new admin password is below the configured minimum length."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on a match. A mismatch or a hash argon2 cannot parse gives False."""
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """True when the stored hash predates the current cost parameters."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_length(password: str, min_length: int) -> None:
    if len(password) < min_length:
        msg = f"Password must be at least {min_length} characters"
        raise PasswordTooShortError(msg)
