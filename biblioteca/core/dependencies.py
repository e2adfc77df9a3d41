# biblioteca/core/dependencies.py
import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from biblioteca.core.security import SupabaseAuthenticator
from biblioteca.core.session import LibrarySession, SessionRegistry, sessions
from biblioteca.domains.library.service import LibraryService
from biblioteca.domains.summary.service import SummaryService
from biblioteca.exceptions.storage import AuthError
from biblioteca.shared.storage import SupabaseStorage

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: str
    email: str | None
    access_token: str


def get_authenticator() -> SupabaseAuthenticator:
    return SupabaseAuthenticator()


def get_session_registry() -> SessionRegistry:
    return sessions


async def validate_token(
    token: HTTPAuthorizationCredentials | None = Depends(security),
    auth: SupabaseAuthenticator = Depends(get_authenticator),
) -> CurrentUser:
    """Validate the bearer token issued by Supabase Auth.

    Returns:
        CurrentUser: The token owner together with the raw token

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if not token or not token.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = await auth.verify_token(token.credentials)
    except AuthError as e:
        logger.warning("Token validation failed: %s", e.message)
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload - missing user ID",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(id=user_id, email=payload.get("email"), access_token=token.credentials)


async def get_current_session(
    current_user: CurrentUser = Depends(validate_token),
    registry: SessionRegistry = Depends(get_session_registry),
) -> LibrarySession:
    """Get the library session of the authenticated user, opening it if needed."""
    return registry.open(current_user.id, current_user.access_token, current_user.email)


def get_storage(session: LibrarySession = Depends(get_current_session)) -> SupabaseStorage:
    return SupabaseStorage(access_token=session.access_token)


def get_summary_service(storage: SupabaseStorage = Depends(get_storage)) -> SummaryService:
    return SummaryService(storage)


def get_library_service(
    storage: SupabaseStorage = Depends(get_storage),
    summary_service: SummaryService = Depends(get_summary_service),
) -> LibraryService:
    return LibraryService(storage, summary_service)
