"""Supabase Storage REST client.

Objects live in a single bucket, namespaced by user id. Every request is made
with the caller's access token so the provider's row-level policies apply.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from biblioteca.core.config import settings
from biblioteca.exceptions.storage import StorageError, StorageNotFoundError

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = {"404", "not_found", "NoSuchKey", "Object not found"}


def _quote_path(path: str) -> str:
    return quote(path.strip("/"), safe="/")


class SupabaseStorage:
    """Async client for the Supabase Storage object API of one bucket."""

    def __init__(
        self,
        access_token: str,
        bucket: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bucket = bucket or settings.supabase_bucket
        self.base_url = (base_url or settings.supabase_base_url).rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key or ""
        self.access_token = access_token
        self._timeout = timeout
        self._transport = transport

    @property
    def storage_url(self) -> str:
        return f"{self.base_url}/storage/v1"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token}",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.storage_url,
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, url: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Storage {action} failed: {str(e)}")
            raise StorageError(f"Storage {action} failed: {str(e)}") from e

        if response.is_error:
            self._raise_for_response(response, action)
        return response

    def _raise_for_response(self, response: httpx.Response, action: str) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or body.get("error") or response.text or response.reason_phrase
        markers = {str(body.get("statusCode", "")), str(body.get("error", "")), str(message)}

        if response.status_code == 404 or markers & NOT_FOUND_MARKERS:
            raise StorageNotFoundError(f"Storage {action}: {message}")

        logger.error(f"Storage {action} failed with {response.status_code}: {message}")
        raise StorageError(f"Storage {action} failed: {message}", upstream_status=response.status_code)

    async def list(self, prefix: str, limit: int | None = None) -> list[dict[str, Any]]:
        """List the objects directly under ``prefix``."""
        payload = {
            "prefix": prefix.strip("/"),
            "limit": limit or settings.storage_list_limit,
            "offset": 0,
            "sortBy": {"column": "name", "order": "asc"},
        }
        response = await self._request("POST", f"/object/list/{self.bucket}", "list", json=payload)
        items = response.json()
        return items if isinstance(items, list) else []

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Upload ``content`` to ``path``; returns the stored object key."""
        await self._request(
            "POST",
            f"/object/{self.bucket}/{_quote_path(path)}",
            "upload",
            content=content,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
            },
        )
        logger.info(f"Stored {len(content)} bytes at {path}")
        return path

    async def download(self, path: str) -> bytes:
        response = await self._request(
            "GET", f"/object/authenticated/{self.bucket}/{_quote_path(path)}", "download"
        )
        return response.content

    async def remove(self, paths: list[str]) -> None:
        await self._request(
            "DELETE",
            f"/object/{self.bucket}",
            "delete",
            json={"prefixes": [path.strip("/") for path in paths]},
        )
        logger.info(f"Removed {len(paths)} object(s) from {self.bucket}")

    async def create_signed_url(self, path: str, expires_in: int | None = None) -> str:
        """Create a time-limited download URL for ``path``."""
        response = await self._request(
            "POST",
            f"/object/sign/{self.bucket}/{_quote_path(path)}",
            "sign",
            json={"expiresIn": expires_in or settings.signed_url_ttl},
        )
        body = response.json()
        signed = body.get("signedURL") or body.get("signedUrl") if isinstance(body, dict) else None
        if not signed:
            raise StorageError("Storage sign failed: no signed URL returned")
        if signed.startswith("http"):
            return signed
        return f"{self.storage_url}/{signed.lstrip('/')}"
