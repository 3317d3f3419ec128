"""Auth routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from postboard.routes.dependencies import (
    get_authenticated_principal,
    get_identity_service,
)
from postboard.schemas.auth import (
    AuthPrincipal,
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
    Role,
)
from postboard.schemas.error import (
    ConflictError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    ValidationFailedError,
)
from postboard.services.identity import IdentityService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ConflictError | ValidationFailedError},
        429: {"model": RateLimitedError},
    },
)
def register(
    payload: RegisterRequest,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> AuthResponse:
    session = service.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=Role(payload.role) if payload.role else None,
    )
    return AuthResponse(token=session.token, user=session.user)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"model": ValidationFailedError},
        401: {"model": UnauthorizedError},
        429: {"model": RateLimitedError},
    },
)
def login(
    payload: LoginRequest,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> AuthResponse:
    session = service.authenticate(email=payload.email, password=payload.password)
    return AuthResponse(token=session.token, user=session.user)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    responses={401: {"model": UnauthorizedError}, 404: {"model": NotFoundError}},
)
def get_me(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> CurrentUserResponse:
    return CurrentUserResponse(data=service.get_current_user(user_id=principal.user_id))
