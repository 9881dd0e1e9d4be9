"""
schemas.py - Credential Service data contracts.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserRecord(BaseModel):
    """Persisted user as returned by store.py. Carries the hash: never serialize it."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    name: str
    password_hash: str
    created_at: datetime

    def public(self) -> "PublicUser":
        return PublicUser.model_validate(self.model_dump(exclude={"password_hash"}))


class PublicUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    name: str
    created_at: datetime

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "createdAt": self.created_at.isoformat(),
        }


class TokenClaims(BaseModel):
    """Verified session-token payload. Only ever built from a fully valid token."""
    sub: str
    email: Optional[str] = None
    iat: int
    exp: int


class RegisterRequest(BaseModel):
    """Missing fields default to '' so register() can report them in one message."""
    username: str = ""
    email: str = ""
    password: str = ""
    name: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""
