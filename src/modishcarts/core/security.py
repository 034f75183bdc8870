"""
Password hashing and token handling.

Access and refresh tokens are both HS256 JWTs signed with the configured
secret; the `type` claim keeps one from being used in place of the other.
Password reset tokens are opaque random strings of which only the sha256
digest is persisted.
"""

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import bcrypt
import jwt

from modishcarts.core.config import SecurityConfig
from modishcarts.core.exceptions import UnauthorizedError
from modishcarts.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

# bcrypt only looks at the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


@dataclass
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass
class TokenClaims:
    user_id: str
    token_type: str
    is_admin: bool
    issued_at: int
    token_version: int
    jti: str


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Stored password hash could not be parsed")
        return False


def _issue(user, token_type: str, settings: SecurityConfig, expires_at: datetime) -> IssuedToken:
    now = DateUtils.now_utc()
    payload = {
        "sub": str(user.id),
        "type": token_type,
        "admin": bool(user.is_admin),
        "iat": int(now.timestamp()),
        "ver": int(user.token_version or 0),
        "exp": int(expires_at.timestamp()),
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return IssuedToken(token=token, expires_at=DateUtils.from_timestamp(payload["exp"]))


def create_access_token(user, settings: SecurityConfig) -> IssuedToken:
    expires_at = DateUtils.create_expiry_time(hours=settings.jwt_expiration_hours)
    return _issue(user, ACCESS_TOKEN, settings, expires_at)


def create_refresh_token(user, settings: SecurityConfig) -> IssuedToken:
    expires_at = DateUtils.create_expiry_time(days=settings.jwt_refresh_expiration_days)
    return _issue(user, REFRESH_TOKEN, settings, expires_at)


def decode_token(
    token: str,
    settings: SecurityConfig,
    expected_type: str = ACCESS_TOKEN,
    error_message: str = "Invalid or expired token",
) -> TokenClaims:
    """Verify signature, expiry and token type; raise UnauthorizedError otherwise."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat", "type", "ver"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired" if expected_type == ACCESS_TOKEN else error_message)
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected {expected_type} token: {e}")
        raise UnauthorizedError(error_message)

    if payload.get("type") != expected_type:
        raise UnauthorizedError(error_message)

    return TokenClaims(
        user_id=str(payload["sub"]),
        token_type=payload["type"],
        is_admin=bool(payload.get("admin", False)),
        issued_at=int(payload["iat"]),
        token_version=int(payload["ver"]),
        jti=payload.get("jti", ""),
    )


def is_token_revoked(claims: TokenClaims, user) -> bool:
    """A password reset bumps user.token_version, retiring every token minted before it."""
    return claims.token_version != (user.token_version or 0)


def generate_reset_token() -> Tuple[str, str]:
    """Return (raw_token, sha256_hex_digest)."""
    raw = secrets.token_urlsafe(32)
    return raw, hash_reset_token(raw)


def hash_reset_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
