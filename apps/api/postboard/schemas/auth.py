"""Authentication schemas."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from postboard.schemas.common import TrimmedStr


class Role(str, Enum):
    ADMIN = "admin"
    AUTHOR = "author"
    GUEST = "guest"


class AuthPrincipal(BaseModel):
    """Normalized caller identity used by business services.

    Guests carry no user id and may only read published content.
    """

    user_id: str | None = None
    role: Role = Role.GUEST
    name: str | None = None
    email: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None or self.role is Role.GUEST

    @property
    def is_admin(self) -> bool:
        return not self.is_guest and self.role is Role.ADMIN


GUEST_PRINCIPAL = AuthPrincipal()


class _EmailCredentials(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RegisterRequest(_EmailCredentials):
    name: TrimmedStr
    password: str = Field(min_length=6)
    role: Literal["admin", "author"] | None = None


class LoginRequest(_EmailCredentials):
    password: str = Field(min_length=1)


class PublicUser(BaseModel):
    id: str
    name: str
    email: str
    role: Role


class AuthSession(BaseModel):
    token: str
    user: PublicUser


class AuthResponse(BaseModel):
    success: Literal[True] = True
    token: str
    user: PublicUser


class CurrentUserResponse(BaseModel):
    success: Literal[True] = True
    data: PublicUser
