"""
Auth HTTP routes: POST /api/auth/register, POST /api/auth/login,
                  POST /api/auth/logout, GET /api/auth/me

Login is by email (case-insensitive). Register and login both set the
HttpOnly auth-token cookie; login also returns the token in the body for
clients that prefer the Authorization: Bearer header.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.auth.dependencies import (
    UNAUTHORIZED_MESSAGE,
    Identity,
    clear_auth_cookie,
    require_user,
    set_auth_cookie,
)
from proposalmatch.auth.schemas import LoginRequest, RegisterRequest
from proposalmatch.auth.security import authenticate, issue_token, register
from proposalmatch.database import get_db
from proposalmatch.errors import AuthError, ValidationError

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register")
async def register_user(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Returns:
        200: {success, user}
        409: CONFLICT (USERNAME_TAKEN | EMAIL_TAKEN)
        422: VALIDATION_ERROR
    """
    user = await register(
        db,
        username=body.username,
        email=body.email,
        password=body.password,
        name=body.name,
    )
    token = issue_token(user.id, {"email": user.email})

    response = JSONResponse(
        status_code=200,
        content={"success": True, "user": user.to_response()},
    )
    set_auth_cookie(response, token)
    return response


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Returns:
        200: {success, user, token}
        401: UNAUTHORIZED "Invalid email or password" (unknown email and wrong password alike)
    """
    if not body.email.strip() or not body.password:
        raise ValidationError("Email and password are required", reason="MISSING_FIELDS")

    user = await authenticate(db, body.email, body.password)
    token = issue_token(user.id, {"email": user.email})

    response = JSONResponse(
        status_code=200,
        content={"success": True, "user": user.to_response(), "token": token},
    )
    set_auth_cookie(response, token)
    return response


@router.post("/logout")
async def logout() -> JSONResponse:
    response = JSONResponse(status_code=200, content={"success": True})
    clear_auth_cookie(response)
    return response


@router.get("/me")
async def me(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """A valid token whose user no longer exists is treated as logged out."""
    user = await store.get_user_by_id(db, identity.user_id)
    if user is None:
        raise AuthError(UNAUTHORIZED_MESSAGE, reason="UNKNOWN_USER")
    return JSONResponse(status_code=200, content={"user": user.public().to_response()})
