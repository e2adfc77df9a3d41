"""
API tests for the library controller.
"""

import pytest
from fastapi import status
from httpx import AsyncClient

from biblioteca.domains.library.service import guess_content_type
from biblioteca.exceptions.storage import StorageError

USER = "user-123"


class TestLibraryController:
    """Test cases for library endpoints."""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/library/files")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_list_files(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/a.txt", "a")
        storage.put(f"{USER}/b.pdf", b"b")
        storage.put_history(USER, [])

        response = await authenticated_client.get("/api/library/files")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "success"
        assert data["data"]["total"] == 2
        first = data["data"]["files"][0]
        assert first["name"] == "b.pdf"
        assert first["full_path"] == f"{USER}/b.pdf"
        assert first["extension_label"] == "PDF"

    @pytest.mark.asyncio
    async def test_list_files_storage_failure(self, authenticated_client: AsyncClient, storage):
        async def failing_list(prefix, limit=None):
            raise StorageError("Storage list failed: timeout", upstream_status=504)

        storage.list = failing_list

        response = await authenticated_client.get("/api/library/files")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["error_code"] == "STORAGE_ERROR"

    @pytest.mark.asyncio
    async def test_upload_file(self, authenticated_client: AsyncClient, storage, user_session):
        response = await authenticated_client.post(
            "/api/library/files",
            files={"file": ("Plan 2024.md", b"# Plan", "application/octet-stream")},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["name"].endswith("_Plan_2024.md")
        assert storage.uploads[0]["content_type"] == guess_content_type("Plan 2024.md")
        assert user_session.file_names == [data["name"]]

    @pytest.mark.asyncio
    async def test_upload_empty_file(self, authenticated_client: AsyncClient, storage):
        response = await authenticated_client.post(
            "/api/library/files", files={"file": ("a.txt", b"", "text/plain")}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert storage.uploads == []

    @pytest.mark.asyncio
    async def test_upload_without_file(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/library/files")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_open_text_file(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/notas.txt", "contenido")

        response = await authenticated_client.get("/api/library/files/notas.txt")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["kind"] == "text"
        assert response.json()["data"]["content"] == "contenido"

    @pytest.mark.asyncio
    async def test_open_binary_file(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/informe.pdf", b"%PDF")

        response = await authenticated_client.get("/api/library/files/informe.pdf")

        data = response.json()["data"]
        assert data["kind"] == "link"
        assert data["url"].startswith("https://")

    @pytest.mark.asyncio
    async def test_open_missing_file(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/library/files/missing.txt")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_open_file_storage_failure(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/notas.txt", "contenido")
        storage.fail_downloads[f"{USER}/notas.txt"] = StorageError(
            "Storage download failed: upstream error", upstream_status=500
        )

        response = await authenticated_client.get("/api/library/files/notas.txt")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["error_code"] == "STORAGE_ERROR"

    @pytest.mark.asyncio
    async def test_delete_file(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/a.txt", "a")

        response = await authenticated_client.delete("/api/library/files/a.txt")

        assert response.status_code == status.HTTP_200_OK
        assert f"{USER}/a.txt" not in storage.objects

    @pytest.mark.asyncio
    async def test_stats(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/a.txt", "a")
        storage.put(f"{USER}/b.txt", "b")
        storage.put(f"{USER}/LICENSE", "c")

        response = await authenticated_client.get("/api/library/stats")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == {"by_extension": {"TXT": 2, "SIN EXTENSION": 1}, "total": 3}

    @pytest.mark.asyncio
    async def test_refresh(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/a.txt", "a")
        storage.put_history(USER, [{"timestamp": "2024-05-01T12:00:00.000Z", "summary": "previo"}])

        response = await authenticated_client.post("/api/library/refresh")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert [f["name"] for f in data["files"]] == ["a.txt"]
        assert data["history"]["entries"][0]["summary"] == "previo"

    @pytest.mark.asyncio
    async def test_refresh_with_corrupted_history(self, authenticated_client: AsyncClient, storage):
        storage.put(f"{USER}/a.txt", "a")
        storage.put_history(USER, "not json")

        response = await authenticated_client.post("/api/library/refresh")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["data"]["history"]["entries"] == []
        assert body["data"]["history"]["notice"]
        assert body["message"] == body["data"]["history"]["notice"]
