"""
Organizer auth: hashed passwords and JWT bearer tokens.
No OAuth. Passwords never stored in plain text.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from passlib.context import CryptContext
from jose import JWTError, jwt

from champhub import config

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def normalize_password(password: str) -> str:
    """Cut to MAX_PASSWORD_BYTES of UTF-8 so signup and login hash the same prefix."""
    raw = password.encode("utf-8")
    if len(raw) <= MAX_PASSWORD_BYTES:
        return password
    return raw[:MAX_PASSWORD_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(normalize_password(password))


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(normalize_password(plain), hashed)
    except ValueError:
        # Unrecognised hash format
        return False


def create_access_token(
    subject: str,
    expires_minutes: int | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    minutes = config.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    claims: dict[str, Any] = dict(extra_claims or {})
    claims.update({
        "sub": subject,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    })
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> str | None:
    """Subject (user id) of a valid, unexpired token; None otherwise."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    return sub if isinstance(sub, str) and sub else None
