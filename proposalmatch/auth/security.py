"""
security.py - Credential Service: password hashing, session tokens, login, registration.

Password hashes: "pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>" (hashlib
PBKDF2-HMAC-SHA256, 16-byte random salt), compared with hmac.compare_digest.

Session tokens: PyJWT HS256 with {sub, email, iat, exp}. Stateless; a token
dies only by expiry or by the client discarding it.

authenticate() answers "no such user" and "wrong password" identically, in
message and in work done: a missing user is still checked against a dummy hash.
"""
import hashlib
import hmac
import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

import jwt
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.auth.schemas import PublicUser, TokenClaims
from proposalmatch.config import settings
from proposalmatch.errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = 260_000
SALT_BYTES = 16

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

INVALID_CREDENTIALS = "Invalid email or password"


class TokenConfigurationError(RuntimeError):
    """SECRET_KEY is not set. A deployment problem, not a caller problem."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def _pbkdf2(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    iterations = iterations or HASH_ITERATIONS
    salt = secrets.token_bytes(SALT_BYTES)
    digest = _pbkdf2(password, salt, iterations)
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Constant-time check. A malformed stored hash never matches."""
    try:
        scheme, iterations, salt_hex, digest_hex = stored_hash.split("$")
        if scheme != HASH_SCHEME:
            return False
        expected = bytes.fromhex(digest_hex)
        actual = _pbkdf2(password, bytes.fromhex(salt_hex), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(actual, expected)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_hex(16))


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def issue_token(subject_id: str, claims: Optional[dict[str, Any]] = None) -> str:
    """
    Sign a session token for subject_id.

    Raises:
        TokenConfigurationError: SECRET_KEY is empty.
    """
    if not settings.secret_key:
        raise TokenConfigurationError("SECRET_KEY is not configured")
    now = datetime.now(timezone.utc)
    payload = {
        **(claims or {}),
        "sub": subject_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.token_ttl_days)).timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=JWT_ALGORITHM)


def verify_token(token: Optional[str]) -> Optional[TokenClaims]:
    """
    Decode and check a session token. Fails closed: an empty, malformed,
    tampered or expired token, a missing secret or a missing claim all return None.
    """
    if not token or not settings.secret_key:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
        )
        return TokenClaims.model_validate(payload)
    except (jwt.PyJWTError, PydanticValidationError):
        return None


# ---------------------------------------------------------------------------
# Login / registration
# ---------------------------------------------------------------------------

async def authenticate(db: AsyncSession, email: str, password: str) -> PublicUser:
    """
    Resolve email + password to a user.

    Raises:
        AuthError: unknown email or wrong password; same message for both.
    """
    user = await store.get_user_by_email(db, email or "")
    if user is None:
        verify_password(password or "", _dummy_hash())
        logger.info("Login failed: invalid credentials")
        raise AuthError(INVALID_CREDENTIALS, reason="INVALID_CREDENTIALS")
    if not verify_password(password or "", user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise AuthError(INVALID_CREDENTIALS, reason="INVALID_CREDENTIALS")
    logger.info("Login succeeded user_id=%s", user.id)
    return user.public()


def validate_registration(username: str, email: str, password: str, name: str) -> None:
    """Raises ValidationError listing every problem with the registration fields."""
    missing = [
        field for field, value in
        (("username", username), ("email", email), ("password", password), ("name", name))
        if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(
            "Username, email, password, and name are required",
            reason="MISSING_FIELDS",
            details=[{"field": field, "issue": "required"} for field in missing],
        )

    details = []
    if not USERNAME_PATTERN.match(username.strip()):
        details.append({
            "field": "username",
            "issue": "Username must be 3-20 characters and contain only letters, numbers, underscores, or hyphens",
        })
    if not EMAIL_PATTERN.match(email.strip()):
        details.append({"field": "email", "issue": "Invalid email format"})
    if len(password) < MIN_PASSWORD_LENGTH:
        details.append({
            "field": "password",
            "issue": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
        })
    if details:
        raise ValidationError(details[0]["issue"], reason="INVALID_FIELDS", details=details)


async def register(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    password: str,
    name: str,
) -> PublicUser:
    """
    Create an account.

    Raises:
        ValidationError: missing or malformed field.
        ConflictError: USERNAME_TAKEN / EMAIL_TAKEN, from the pre-check or
            from a unique-key race on insert.
    """
    validate_registration(username, email, password, name)

    if await store.get_user_by_username(db, username) is not None:
        raise ConflictError("Username is already taken", reason="USERNAME_TAKEN")
    if await store.get_user_by_email(db, email) is not None:
        raise ConflictError("User with this email already exists", reason="EMAIL_TAKEN")

    try:
        user = await store.create_user(
            db,
            username=username,
            email=email,
            password_hash=hash_password(password),
            name=name,
        )
    except IntegrityError as exc:
        # Registration is the only write in its request: roll it back and re-check
        await db.rollback()
        logger.info("Registration lost a unique-key race")
        if await store.get_user_by_username(db, username) is not None:
            raise ConflictError("Username is already taken", reason="USERNAME_TAKEN") from exc
        raise ConflictError("User with this email already exists", reason="EMAIL_TAKEN") from exc

    return user.public()


__all__ = [
    "TokenConfigurationError",
    "hash_password",
    "verify_password",
    "issue_token",
    "verify_token",
    "authenticate",
    "register",
]
