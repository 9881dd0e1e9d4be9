"""
dependencies.py - Request identity resolution and the auth cookie.

resolve_identity() returns an explicit result: either Identity or AuthFailure.
Routes never inspect it themselves; they depend on require_user, which turns
an AuthFailure into AuthError (401 UNAUTHORIZED).
"""
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Request, Response

from proposalmatch.auth.security import verify_token
from proposalmatch.config import settings
from proposalmatch.errors import AuthError

AUTH_COOKIE = "auth-token"
UNAUTHORIZED_MESSAGE = "Unauthorized. Please log in."


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthFailure:
    reason: str  # MISSING_TOKEN | INVALID_TOKEN


IdentityResult = Union[Identity, AuthFailure]


def token_from_request(request: Request) -> Optional[str]:
    """Cookie first, then Authorization: Bearer."""
    token = request.cookies.get(AUTH_COOKIE)
    if token:
        return token
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def resolve_identity(request: Request) -> IdentityResult:
    token = token_from_request(request)
    if token is None:
        return AuthFailure("MISSING_TOKEN")
    claims = verify_token(token)
    if claims is None:
        return AuthFailure("INVALID_TOKEN")
    return Identity(user_id=claims.sub, email=claims.email)


async def require_user(request: Request) -> Identity:
    """FastAPI dependency for every authenticated route."""
    result = resolve_identity(request)
    if isinstance(result, AuthFailure):
        raise AuthError(UNAUTHORIZED_MESSAGE, reason=result.reason)
    return result


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        max_age=settings.token_ttl_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=AUTH_COOKIE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
