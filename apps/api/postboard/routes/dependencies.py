"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Response, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from postboard.adapters.auth import JwtTokenProvider, MockTokenProvider, TokenProvider
from postboard.core.config import Settings, get_settings
from postboard.core.logging_safety import safe_log_identifier
from postboard.core.rate_limit import FixedWindowRateLimiter
from postboard.errors import ApiError
from postboard.repositories.memory import InMemoryStore
from postboard.schemas.auth import GUEST_PRINCIPAL, AuthPrincipal, Role
from postboard.schemas.error import ErrorKind
from postboard.services.identity import IdentityService
from postboard.services.posts import PostService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_token_provider(settings: Annotated[Settings, Depends(get_settings)]) -> TokenProvider:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "jwt":
        return JwtTokenProvider(
            secret=settings.token_secret,
            issuer=settings.token_issuer,
            ttl_seconds=settings.token_ttl_seconds,
        )
    return MockTokenProvider()


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_identity_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    tokens: Annotated[TokenProvider, Depends(get_token_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> IdentityService:
    return IdentityService(
        store,
        tokens,
        password_hash_rounds=settings.password_hash_rounds,
        default_role=Role(settings.default_user_role),
    )


def get_post_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> PostService:
    return PostService(store)


def _resolve_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials,
    identity: IdentityService,
) -> AuthPrincipal:
    safe_correlation_id = safe_log_identifier(_request_correlation_id(request), prefix="cid")
    try:
        principal = identity.resolve_caller(credentials.credentials)
    except ApiError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            exc.kind.value,
        )
        raise

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
        principal.role.value,
    )
    request.state.auth_principal = principal
    return principal


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    identity: Annotated[IdentityService, Depends(get_identity_service)],
) -> AuthPrincipal:
    """Validate bearer token and return the caller identity."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_or_missing_bearer",
            safe_log_identifier(_request_correlation_id(request), prefix="cid"),
            request.method,
            request.url.path,
        )
        raise ApiError(ErrorKind.UNAUTHORIZED, "Not authorized, no token")

    return _resolve_principal(request, credentials, identity)


async def get_optional_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    identity: Annotated[IdentityService, Depends(get_identity_service)],
) -> AuthPrincipal:
    """Return the caller identity, or the guest sentinel when no token is sent.

    A token that is sent but invalid is still rejected.
    """
    if credentials is None:
        return GUEST_PRINCIPAL
    if credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise ApiError(ErrorKind.UNAUTHORIZED, "Not authorized, no token")

    return _resolve_principal(request, credentials, identity)


def get_rate_limiter(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> FixedWindowRateLimiter:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        request.app.state.rate_limiter = limiter
    return limiter


async def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: Annotated[FixedWindowRateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Per-client-IP request budget shared by every API route."""
    if not limiter.enabled:
        return

    client_ip = request.client.host if request.client else "unknown"
    decision = limiter.hit(f"ip:{client_ip}")
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at),
    }
    if not decision.allowed:
        logger.warning(
            "rate_limit.rejected correlation_id=%s method=%s path=%s client=%s",
            safe_log_identifier(_request_correlation_id(request), prefix="cid"),
            request.method,
            request.url.path,
            safe_log_identifier(client_ip, prefix="ip"),
        )
        raise ApiError(
            ErrorKind.RATE_LIMITED,
            "Too many requests from this IP, please try again later",
            headers=headers,
        )
    response.headers.update(headers)
