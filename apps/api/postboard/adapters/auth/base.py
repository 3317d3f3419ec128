"""Authentication token provider interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: str
    role: str | None = None


class TokenProvider(ABC):
    """Provider-neutral token issue/verify interface."""

    @abstractmethod
    def issue_token(self, *, user_id: str, role: str) -> str:
        """Issue an opaque bearer token for a user."""

    @abstractmethod
    def verify_token(self, token: str) -> TokenClaims:
        """Verify token and return its claims."""


__all__ = ["AuthVerificationError", "TokenClaims", "TokenProvider"]
