"""Auth token provider adapters."""

from .base import AuthVerificationError, TokenClaims, TokenProvider
from .jwt_auth import JwtTokenProvider
from .mock_auth import MockTokenProvider

__all__ = [
    "AuthVerificationError",
    "TokenClaims",
    "TokenProvider",
    "JwtTokenProvider",
    "MockTokenProvider",
]
