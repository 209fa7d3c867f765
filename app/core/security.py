"""
Password hashing (bcrypt), password policy and signed session tokens.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import WeakPasswordError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY

MIN_PASSWORD_LENGTH = 8
_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


def validate_password_strength(candidate: str | None) -> str:
    """Return *candidate* unchanged or raise :class:`WeakPasswordError`.

    Policy: at least 8 characters, one uppercase letter and one digit.
    """
    if not candidate or len(candidate) < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if not _UPPER_RE.search(candidate) or not _DIGIT_RE.search(candidate):
        raise WeakPasswordError(
            "Password must include at least one uppercase letter and one number"
        )
    return candidate


def generate_temporary_password(length: int = 12) -> str:
    """Random password that always satisfies :func:`validate_password_strength`."""
    alphabet = string.ascii_letters + string.digits
    while True:
        candidate = "".join(secrets.choice(alphabet) for _ in range(length))
        if _UPPER_RE.search(candidate) and _DIGIT_RE.search(candidate):
            return candidate


# ── Session tokens ──────────────────────────────────────────────────
def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(session_id: str, expires_at: datetime) -> str:
    return jwt.encode(
        {"exp": expires_at, "sid": session_id, "type": "session"},
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_session_token(token: str) -> str | None:
    """Return the session id if *token* is a valid, unexpired session token."""
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    return payload.get("sid")


def session_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=settings.SESSION_TTL_HOURS)
