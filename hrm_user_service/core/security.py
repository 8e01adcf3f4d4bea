from __future__ import annotations

from functools import lru_cache

from passlib.context import CryptContext
from passlib.exc import PasswordTruncateError

from hrm_user_service.core.errors import InternalError, ValidationError

BCRYPT_ROUNDS = 12
# bcrypt only reads this many bytes of the secret.
BCRYPT_MAX_PASSWORD_BYTES = 72

_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
    bcrypt__truncate_error=True,
)


# PUBLIC_INTERFACE
def password_fits_bcrypt(password: str) -> bool:
    """True when bcrypt will see every byte of ``password``."""
    return len(password.encode("utf-8")) <= BCRYPT_MAX_PASSWORD_BYTES


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Raises:
        ValidationError: the password is longer than bcrypt's 72-byte limit.
    """
    try:
        return _pwd_context.hash(password)
    except PasswordTruncateError as exc:
        raise ValidationError(
            f"hash password: password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise InternalError("hash password: failed to hash password") from exc


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a bcrypt hash.

    Unrecognised or corrupt hashes never verify, and neither do passwords
    bcrypt would have to truncate.
    """
    if not password_fits_bcrypt(password):
        return False
    try:
        return _pwd_context.verify(password, password_hash)
    except (TypeError, ValueError):
        return False


@lru_cache
def _dummy_hash() -> str:
    return _pwd_context.hash("dummy-password-for-timing")


# PUBLIC_INTERFACE
def burn_password_check(password: str) -> None:
    """Spend one bcrypt verification so unknown usernames cost as much as wrong passwords."""
    _pwd_context.verify(password, _dummy_hash())
