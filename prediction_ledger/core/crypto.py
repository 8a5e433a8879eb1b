"""Password hashing for account credentials."""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain text password with a fresh bcrypt salt."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


__all__ = ["BCRYPT_ROUNDS", "MIN_PASSWORD_LENGTH", "hash_password", "verify_password"]
