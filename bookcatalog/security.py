"""
Password hashing and session tokens.

Passwords are stored as ``pbkdf2_sha256`` hashes. Rows written before
hashing was introduced still hold the plain password; those verify through
the deprecated ``plaintext`` scheme and are upgraded on the next login.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 8 * 60

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "plaintext"],
    deprecated=["plaintext"],
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored: Optional[str]) -> tuple[bool, Optional[str]]:
    """
    Check a password against its stored value.

    Returns:
        ``(verified, replacement_hash)``. ``replacement_hash`` is set when the
        stored value uses a deprecated scheme and should be rewritten.
    """
    if not password or not stored:
        return False, None
    try:
        return pwd_context.verify_and_update(password, stored)
    except (ValueError, TypeError):
        return False, None


def create_access_token(
    subject: str,
    secret_key: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode({"sub": subject, "exp": expire}, secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> Optional[str]:
    """Return the token subject, or ``None`` when the token is invalid or expired."""
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None
