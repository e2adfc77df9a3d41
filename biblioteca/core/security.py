"""Security related functions."""

import logging
from typing import Any

import httpx
import jwt
from jwt import InvalidTokenError

from biblioteca.core.config import settings
from biblioteca.exceptions.storage import AuthError

logger = logging.getLogger(__name__)

TOKEN_AUDIENCE = "authenticated"


class SupabaseAuthenticator:
    """
    Handles Supabase Auth sign-in, sign-up, sign-out and token verification.

    Tokens are verified locally with the project's JWT secret when one is
    configured; otherwise the auth service itself is asked who the token
    belongs to.

    :ivar base_url: The Supabase project URL.
    :type base_url: str
    :ivar api_key: The public anon key sent with every request.
    :type api_key: str
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        jwt_secret: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_base_url).rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key or ""
        self.jwt_secret = jwt_secret if jwt_secret is not None else settings.supabase_jwt_secret
        self._timeout = timeout
        self._transport = transport

    @property
    def auth_url(self) -> str:
        return f"{self.base_url}/auth/v1"

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(
                    method, f"{self.auth_url}{path}", headers=self._headers(access_token), **kwargs
                )
        except httpx.HTTPError as e:
            logger.error("Auth service request failed: %s", str(e))
            raise AuthError(f"Auth service unavailable: {str(e)}", status_code=503) from e

        if response.is_error:
            raise AuthError(_error_message(response), status_code=_client_status(response.status_code))
        return response

    async def sign_in(self, email: str, password: str) -> dict:
        """Exchange email and password for a session (tokens + user)."""
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return response.json()

    async def sign_up(self, email: str, password: str) -> dict:
        """Create an account. Returns the created user (and a session when auto-confirmed)."""
        response = await self._request("POST", "/signup", json={"email": email, "password": password})
        return response.json()

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> dict:
        response = await self._request("GET", "/user", access_token=access_token)
        return response.json()

    async def verify_token(self, token: str) -> dict:
        """
        Verifies an access token issued by Supabase Auth and returns its claims.
        The ``sub`` claim is the user id.

        :param token: The JWT access token to be verified.
        :return: A dictionary with at least ``sub`` (and ``email`` when known).
        """
        if self.jwt_secret:
            try:
                return jwt.decode(
                    token,
                    key=self.jwt_secret,
                    algorithms=["HS256"],
                    audience=TOKEN_AUDIENCE,
                )
            except InvalidTokenError as e:
                raise AuthError(f"Invalid authentication token: {str(e)}") from e

        user = await self.get_user(token)
        if not user.get("id"):
            raise AuthError("Invalid authentication token")
        return {"sub": user["id"], "email": user.get("email")}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


def _client_status(upstream_status: int) -> int:
    # Upstream 4xx stays a client error, anything else is a bad gateway.
    if 400 <= upstream_status < 500:
        return 401 if upstream_status in (400, 401, 403) else upstream_status
    return 502
