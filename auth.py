"""Credential checks and bearer tokens.

Passwords are stored as salted PBKDF2-SHA256 digests. Tokens are HS256 JWTs
carrying the user id and role, valid for ``TOKEN_TTL_DAYS`` days.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

import jwt

import db
from env_validation import get_env_int, jwt_secret
from errors import InvalidCredentials, Unauthorized

logger = logging.getLogger(__name__)

_PBKDF2_ITERATIONS = 150_000
_PBKDF2_DIGEST = "sha256"
_JWT_ALGORITHM = "HS256"


# ---------- Passwords ----------
def _generate_salt() -> str:
    return secrets.token_bytes(16).hex()


def _pbkdf2_hash(password: str, salt_hex: str) -> str:
    try:
        salt_bytes = bytes.fromhex(salt_hex)
    except ValueError:
        raise ValueError("Invalid salt for password hashing") from None
    return hashlib.pbkdf2_hmac(
        _PBKDF2_DIGEST,
        password.encode("utf-8"),
        salt_bytes,
        _PBKDF2_ITERATIONS,
    ).hex()


def hash_password(password: str) -> tuple[str, str]:
    salt_hex = _generate_salt()
    return _pbkdf2_hash(password, salt_hex), salt_hex


def verify_password(password: str, stored_hash: str, stored_salt: Optional[str]) -> bool:
    if not stored_salt:
        return False
    try:
        derived = _pbkdf2_hash(password, stored_salt)
    except ValueError:
        return False
    return hmac.compare_digest(stored_hash or "", derived)


# ---------- Tokens ----------
def token_ttl() -> timedelta:
    return timedelta(days=get_env_int("TOKEN_TTL_DAYS", 7))


def issue_token(user: Mapping[str, Any], *, now: Optional[datetime] = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "id": user["id"],
        "role": user["role"],
        "iat": issued_at,
        "exp": issued_at + token_ttl(),
    }
    return jwt.encode(payload, jwt_secret(), algorithm=_JWT_ALGORITHM)


def decode_token(token: Optional[str]) -> dict[str, Any]:
    if not token:
        raise Unauthorized()
    try:
        claims = jwt.decode(
            token,
            jwt_secret(),
            algorithms=[_JWT_ALGORITHM],
            options={"require": ["exp", "id"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired") from None
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token") from None
    if not claims.get("id"):
        raise Unauthorized("Invalid token")
    return claims


def extract_bearer(header_value: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not header_value:
        raise Unauthorized()
    parts = header_value.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized()
    return parts[1]


# ---------- Operations ----------
def public_profile(user: Mapping[str, Any]) -> dict[str, str]:
    return {"username": user["username"], "email": user["email"], "role": user["role"]}


def login(email: str, password: str) -> dict[str, str]:
    user = db.get_user_by_email(email)
    if not user or not verify_password(password, user["pw_hash"], user["pw_salt"]):
        logger.warning("Failed login attempt for %s", email)
        raise InvalidCredentials()
    logger.info("User %s logged in", user["username"])
    return {"token": issue_token(user), **public_profile(user)}


def resolve_caller(token: Optional[str]) -> dict[str, Any]:
    claims = decode_token(token)
    user = db.get_user(claims["id"])
    if user is None:
        logger.warning("Rejected token for unknown user %s", claims["id"])
        raise Unauthorized("User not found")
    return user


def is_admin(caller: Mapping[str, Any]) -> bool:
    return caller.get("role") == "admin"
