"""HS256 JWT token provider."""

from __future__ import annotations

import time

import jwt
from jwt import InvalidTokenError

from postboard.adapters.auth.base import AuthVerificationError, TokenClaims, TokenProvider

_ALGORITHM = "HS256"


class JwtTokenProvider(TokenProvider):
    """Signs and validates access tokens with a shared secret."""

    def __init__(self, *, secret: str, issuer: str, ttl_seconds: int) -> None:
        self._secret = secret
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds

    def issue_token(self, *, user_id: str, role: str) -> str:
        now = int(time.time())
        payload = {
            "sub": user_id,
            "role": role,
            "iss": self._issuer,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify_token(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                leeway=5,
                options={"require": ["sub", "iat", "exp", "iss"]},
            )
        except InvalidTokenError as exc:
            raise AuthVerificationError("Not authorized, token failed") from exc

        subject = str(payload.get("sub") or "").strip()
        if not subject:
            raise AuthVerificationError("Bearer token missing user identity")

        role = payload.get("role")
        return TokenClaims(subject=subject, role=str(role) if role else None)


__all__ = ["JwtTokenProvider"]
