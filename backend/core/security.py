# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Verification-code generation             (secrets)
3. JWT creation / decoding                  (PyJWT / HS256)
4. FastAPI dependency guards                (get_caller_id, require_admin)
"""

import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from database import get_db

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib embeds a random per-password salt in the hash string, so a single
# column holds everything needed to verify.  600 000 rounds is passlib's
# 2024 default; tests lower it through PASSWORD_HASH_ROUNDS.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password.  Returns the full passlib hash string."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.  Malformed stored
    hashes verify as False rather than raising.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# 2.  Verification codes
# ---------------------------------------------------------------------------


def generate_verification_code() -> str:
    """Six decimal digits in 100000–999999, from the OS CSPRNG."""
    return str(100_000 + secrets.randbelow(900_000))


# ---------------------------------------------------------------------------
# 3.  JWT – access tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT with HS256.

    *data* should contain at minimum: sub (user id) and is_admin.
    An ``exp`` claim is added automatically.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    return _jwt.encode(to_encode, settings.secret_key, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT.  Raises UnauthorizedError on any failure
    (expired, bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except (_jwt.ExpiredSignatureError, _jwt.InvalidTokenError):
        raise UnauthorizedError("Invalid or expired token")


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def is_valid_id(value: Optional[str]) -> bool:
    return bool(value) and bool(_ID_RE.match(value))


def parse_id(value: Optional[str], label: str = "ID") -> str:
    """Return *value* if it looks like one of our identifiers, else 400."""
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {label}")
    return value


def get_caller_id(request: Request) -> Optional[str]:
    """
    Dependency: the identifier the caller claims to act as.

    A bearer token wins when present and must verify.  Otherwise the legacy
    ``adminid`` header is accepted while ``allow_header_identity`` is on.
    Returns None when neither is supplied.
    """
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        payload = decode_access_token(auth[7:].strip())
        return payload.get("sub")

    if settings.allow_header_identity:
        return request.headers.get("adminid") or None
    return None


def require_admin(
    caller_id: Optional[str] = Depends(get_caller_id),
    db: Session = Depends(get_db),
):
    """
    Dependency: loads the calling account and asserts ``is_admin``.

    401 if no identity was supplied.  403 – with one message – when the id is
    malformed, unknown, or belongs to a non-admin, so the response says
    nothing about which accounts exist.
    """
    if not caller_id:
        raise UnauthorizedError("Admin ID required")

    # Lazy import to avoid circular dependency at module load time
    from models.user import User  # noqa: E402

    admin = db.get(User, caller_id) if is_valid_id(caller_id) else None
    if admin is None or not admin.is_admin:
        raise ForbiddenError("Access denied: Admins only")
    return admin


# -- Request IP --------------------------------------------------------------


def get_client_ip(request: Request) -> str:
    """Originating client address, recorded on activity entries."""
    # Behind a proxy the first X-Forwarded-For hop is the real client
    hops = request.headers.get("X-Forwarded-For")
    if hops:
        return hops.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
