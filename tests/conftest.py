# tests/conftest.py
import os

# Set up test environment variables BEFORE any other imports
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from biblioteca.core.dependencies import (
    CurrentUser,
    get_authenticator,
    get_session_registry,
    get_storage,
    validate_token,
)
from biblioteca.core.session import LibrarySession, SessionRegistry
from biblioteca.main import app
from tests.factories import FakeStorage, make_gemini_response

TEST_USER_ID = "user-123"
TEST_EMAIL = "reader@example.com"
TEST_TOKEN = "test-access-token"


@pytest.fixture
def storage():
    """In-memory object store."""
    return FakeStorage()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def session():
    """A fresh library session for the test user."""
    return LibrarySession(user_id=TEST_USER_ID, email=TEST_EMAIL, access_token=TEST_TOKEN)


@pytest.fixture
def current_user():
    return CurrentUser(id=TEST_USER_ID, email=TEST_EMAIL, access_token=TEST_TOKEN)


@pytest.fixture
def mock_authenticator():
    """Mock Supabase Auth client."""
    mock = MagicMock()
    mock.sign_in = AsyncMock(
        return_value={
            "access_token": TEST_TOKEN,
            "refresh_token": "refresh-token",
            "token_type": "bearer",
            "expires_in": 3600,
            "user": {"id": TEST_USER_ID, "email": TEST_EMAIL},
        }
    )
    mock.sign_up = AsyncMock(return_value={"id": TEST_USER_ID, "email": TEST_EMAIL})
    mock.sign_out = AsyncMock(return_value=None)
    mock.verify_token = AsyncMock(return_value={"sub": TEST_USER_ID, "email": TEST_EMAIL})
    return mock


@pytest.fixture
def mock_gemini():
    """Patch the Gemini SDK; yields the model whose responses tests can change."""
    with patch("biblioteca.domains.summary.service.genai") as mock_genai:
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=make_gemini_response())
        mock_genai.GenerativeModel.return_value = model
        yield model


@pytest_asyncio.fixture
async def client(storage, registry, mock_authenticator):
    """Create a test client with collaborators replaced by fakes."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_authenticator] = lambda: mock_authenticator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client, current_user):
    """Create an authenticated test client."""
    app.dependency_overrides[validate_token] = lambda: current_user
    yield client


@pytest.fixture
def user_session(registry, current_user):
    """The registry session the authenticated client works with."""
    return registry.open(current_user.id, current_user.access_token, current_user.email)
