"""
Password hashing — argon2id via argon2-cffi.

Hashes are salted and carry their own cost parameters, so they can be
verified after the default parameters change. Plain passwords are never
stored or logged.
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()

# Verified against when a login names an unknown user, so the response time
# does not reveal whether the username exists.
_DUMMY_HASH = _password_hasher.hash("dummy-password-for-timing")


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` for a wrong password or
        an unparseable hash.
    """
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def burn_password_check(plain_password: str) -> None:
    """Spend one verification's worth of work without a real hash."""
    verify_password(plain_password, _DUMMY_HASH)
