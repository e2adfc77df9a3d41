"""Authentication controller endpoints."""

import logging

from fastapi import APIRouter, Depends, status

from biblioteca.core.dependencies import (
    CurrentUser,
    get_authenticator,
    get_session_registry,
    validate_token,
)
from biblioteca.core.security import SupabaseAuthenticator
from biblioteca.core.session import SessionRegistry
from biblioteca.domains.auth.service import AuthService
from biblioteca.schemas.auth import (
    AuthResponse,
    LogoutResponse,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def get_auth_service(
    auth: SupabaseAuthenticator = Depends(get_authenticator),
    registry: SessionRegistry = Depends(get_session_registry),
) -> AuthService:
    return AuthService(auth, registry)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(signup_data: SignUpRequest, service: AuthService = Depends(get_auth_service)):
    """Create a new account with email and password.

    When the auth service confirms accounts immediately the response also
    carries a session; otherwise the user signs in afterwards.
    """
    return await service.sign_up(signup_data)


@router.post("/login", response_model=AuthResponse)
async def login(login_data: SignInRequest, service: AuthService = Depends(get_auth_service)):
    """Sign in with email and password and open a library session."""
    return await service.sign_in(login_data)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    current_user: CurrentUser = Depends(validate_token),
    service: AuthService = Depends(get_auth_service),
):
    """Sign out and discard the library session."""
    await service.sign_out(current_user.id, current_user.access_token)
    return LogoutResponse()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: CurrentUser = Depends(validate_token)):
    """Get current authenticated user information."""
    return UserResponse(id=current_user.id, email=current_user.email)
