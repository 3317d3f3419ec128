"""Mock token provider for local development and tests."""

from postboard.adapters.auth.base import AuthVerificationError, TokenClaims, TokenProvider


class MockTokenProvider(TokenProvider):
    """Issues and accepts deterministic test tokens only.

    Token format:
    - ``test:<user_id>``
    - ``test:<user_id>:<role>``
    """

    def issue_token(self, *, user_id: str, role: str) -> str:
        return f"test:{user_id}:{role}"

    def verify_token(self, token: str) -> TokenClaims:
        parts = token.split(":")
        if len(parts) not in (2, 3) or parts[0] != "test":
            raise AuthVerificationError("Invalid bearer token")

        user_id = parts[1].strip()
        role = parts[2].strip() if len(parts) == 3 else None

        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return TokenClaims(subject=user_id, role=role or None)


__all__ = ["MockTokenProvider"]
