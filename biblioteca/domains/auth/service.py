"""Authentication service layer."""

import logging

from biblioteca.core.security import SupabaseAuthenticator
from biblioteca.core.session import SessionRegistry
from biblioteca.exceptions.storage import AuthError
from biblioteca.schemas.auth import (
    AuthResponse,
    AuthSession,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)


def _user_from_payload(payload: dict) -> UserResponse:
    user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
    if not user.get("id"):
        raise AuthError("Auth service returned no user", status_code=502)
    return UserResponse(id=user["id"], email=user.get("email"))


def _session_from_payload(payload: dict, user: UserResponse) -> AuthSession | None:
    if not payload.get("access_token"):
        return None
    return AuthSession(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
        token_type=payload.get("token_type") or "bearer",
        expires_in=payload.get("expires_in"),
        user=user,
    )


class AuthService:
    """Signs users in and out and ties library sessions to those events."""

    def __init__(self, auth: SupabaseAuthenticator, registry: SessionRegistry):
        self.auth = auth
        self.registry = registry

    async def sign_in(self, credentials: SignInRequest) -> AuthResponse:
        payload = await self.auth.sign_in(credentials.email, credentials.password)
        user = _user_from_payload(payload)
        session = _session_from_payload(payload, user)
        if session is None:
            raise AuthError("Auth service returned no session", status_code=502)

        self.registry.open(user.id, session.access_token, user.email)
        logger.info(f"User {user.id} signed in")
        return AuthResponse(user=user, session=session, message="Login successful")

    async def sign_up(self, credentials: SignUpRequest) -> AuthResponse:
        payload = await self.auth.sign_up(credentials.email, credentials.password)
        user = _user_from_payload(payload)
        session = _session_from_payload(payload, user)
        if session is not None:
            self.registry.open(user.id, session.access_token, user.email)
        logger.info(f"Account created for user {user.id}")
        return AuthResponse(user=user, session=session, message="Account created, please sign in")

    async def sign_out(self, user_id: str, access_token: str) -> None:
        try:
            await self.auth.sign_out(access_token)
        finally:
            self.registry.close(user_id)
            logger.info(f"User {user_id} signed out")
