"""Identity service layer: registration, login and caller resolution."""

from __future__ import annotations

from functools import lru_cache
import logging

from postboard.adapters.auth import AuthVerificationError, TokenProvider
from postboard.core.logging_safety import safe_log_email, safe_log_identifier
from postboard.core.passwords import hash_password, verify_password
from postboard.errors import ApiError
from postboard.repositories.memory import DuplicateKeyError, InMemoryStore, UserRecord
from postboard.schemas.auth import AuthPrincipal, AuthSession, PublicUser, Role
from postboard.schemas.error import ErrorKind

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid credentials"
_EMAIL_IN_USE = "Email already in use"
_USER_NOT_FOUND = "No user found with this id"


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("postboard-dummy-secret", rounds=rounds)


class IdentityService:
    def __init__(
        self,
        store: InMemoryStore,
        tokens: TokenProvider,
        *,
        password_hash_rounds: int = 12,
        default_role: Role = Role.AUTHOR,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._password_hash_rounds = password_hash_rounds
        self._default_role = default_role

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: Role | None = None,
    ) -> AuthSession:
        email = email.strip().lower()
        if self._store.get_user_by_email(email) is not None:
            logger.info("identity.register_rejected email=%s reason=email_in_use", safe_log_email(email))
            raise ApiError(ErrorKind.CONFLICT, _EMAIL_IN_USE)

        password_hash = hash_password(password, rounds=self._password_hash_rounds)
        try:
            user = self._store.create_user(
                name=name,
                email=email,
                password_hash=password_hash,
                role=role or self._default_role,
            )
        except DuplicateKeyError as exc:
            raise ApiError(ErrorKind.CONFLICT, _EMAIL_IN_USE) from exc

        logger.info(
            "identity.registered user_id=%s role=%s",
            safe_log_identifier(user.id, prefix="uid"),
            user.role.value,
        )
        return self._session_for(user)

    def authenticate(self, *, email: str, password: str) -> AuthSession:
        user = self._store.get_user_by_email(email.strip().lower())
        if user is None:
            # Same hashing cost as a real mismatch.
            verify_password(password, _dummy_hash(self._password_hash_rounds))
            logger.info("identity.login_rejected email=%s", safe_log_email(email))
            raise ApiError(ErrorKind.UNAUTHORIZED, _INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            logger.info("identity.login_rejected email=%s", safe_log_email(email))
            raise ApiError(ErrorKind.UNAUTHORIZED, _INVALID_CREDENTIALS)

        logger.info("identity.login_accepted user_id=%s", safe_log_identifier(user.id, prefix="uid"))
        return self._session_for(user)

    def resolve_caller(self, token: str | None) -> AuthPrincipal:
        if not token:
            raise ApiError(ErrorKind.UNAUTHORIZED, "Not authorized, no token")

        try:
            claims = self._tokens.verify_token(token)
        except AuthVerificationError as exc:
            raise ApiError(ErrorKind.UNAUTHORIZED, "Not authorized, token failed") from exc

        user = self._store.get_user(claims.subject)
        if user is None:
            raise ApiError(ErrorKind.NOT_FOUND, _USER_NOT_FOUND)

        if claims.role is not None and claims.role != user.role.value:
            logger.info(
                "identity.stale_token_role user_id=%s token_role=%s stored_role=%s",
                safe_log_identifier(user.id, prefix="uid"),
                claims.role,
                user.role.value,
            )

        return AuthPrincipal(user_id=user.id, role=user.role, name=user.name, email=user.email)

    def get_current_user(self, *, user_id: str) -> PublicUser:
        user = self._store.get_user(user_id)
        if user is None:
            raise ApiError(ErrorKind.NOT_FOUND, _USER_NOT_FOUND)
        return self._to_public_user(user)

    def _session_for(self, user: UserRecord) -> AuthSession:
        token = self._tokens.issue_token(user_id=user.id, role=user.role.value)
        return AuthSession(token=token, user=self._to_public_user(user))

    @staticmethod
    def _to_public_user(record: UserRecord) -> PublicUser:
        return PublicUser(id=record.id, name=record.name, email=record.email, role=record.role)
