"""Tests for the kitty backend client."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from kitty_bot.api_client import KittyAPIClient, UploadError
from kitty_bot.models import PhotoUploadItem


class _AnyHour(str):
    """Compares equal to any ISO-8601 timestamp string."""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, str) and "T" in other

    def __hash__(self) -> int:
        return 0


ANY_HOUR = _AnyHour()


def make_items(count: int) -> list[PhotoUploadItem]:
    return [
        PhotoUploadItem(
            photo_url=f"https://files.example.com/file_{i}.jpg",
            filename=f"photo_1700000000000_{i}.jpg",
            caption=f"Cat ({i + 1}/{count})",
        )
        for i in range(count)
    ]


@pytest.mark.asyncio
class TestKittyAPIClient:
    """Test kitty backend client functionality."""

    async def test_upload_batch_success(
        self, backend_url: str, api_key: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a batch goes out as one request with every photo."""
        httpx_mock.add_response(
            method="POST",
            url=f"{backend_url}/api/kittys/images",
            json={"public_ids": ["a", "b"]},
            status_code=200,
        )

        async with KittyAPIClient(backend_url, api_key) as client:
            result = await client.upload_batch(make_items(2))

        assert result == {"public_ids": ["a", "b"]}

        request = httpx_mock.get_request()
        assert request.headers["x-api-key"] == api_key
        assert request.headers["content-type"] == "application/json"
        body = json.loads(request.content)
        assert body == {
            "photos": [
                {
                    "photo_url": "https://files.example.com/file_0.jpg",
                    "filename": "photo_1700000000000_0.jpg",
                    "caption": "Cat (1/2)",
                },
                {
                    "photo_url": "https://files.example.com/file_1.jpg",
                    "filename": "photo_1700000000000_1.jpg",
                    "caption": "Cat (2/2)",
                },
            ]
        }

    async def test_upload_batch_trailing_slash_base_url(
        self, backend_url: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a trailing slash on the backend URL is tolerated."""
        httpx_mock.add_response(
            method="POST",
            url=f"{backend_url}/api/kittys/images",
            json={"public_ids": ["a"]},
        )

        async with KittyAPIClient(f"{backend_url}/") as client:
            result = await client.upload_batch(make_items(1))

        assert result["public_ids"] == ["a"]

    async def test_upload_batch_error_status(
        self, backend_url: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a non-2xx response raises with status and body."""
        httpx_mock.add_response(
            method="POST",
            url=f"{backend_url}/api/kittys/images",
            json={"error": "storage unavailable"},
            status_code=503,
        )

        async with KittyAPIClient(backend_url) as client:
            with pytest.raises(UploadError) as exc_info:
                await client.upload_batch(make_items(1))

        assert exc_info.value.status_code == 503
        assert exc_info.value.body == {"error": "storage unavailable"}

    async def test_upload_batch_network_error(
        self, backend_url: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that network failures surface as UploadError without a status."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        async with KittyAPIClient(backend_url) as client:
            with pytest.raises(UploadError, match="Network error") as exc_info:
                await client.upload_batch(make_items(1))

        assert exc_info.value.status_code is None

    async def test_upload_batch_timeout(
        self, backend_url: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a timed out request is treated as failed."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        async with KittyAPIClient(backend_url) as client:
            with pytest.raises(UploadError):
                await client.upload_batch(make_items(1))

    async def test_upload_batch_invalid_json(
        self, backend_url: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a non-JSON success body raises UploadError."""
        httpx_mock.add_response(
            method="POST",
            url=f"{backend_url}/api/kittys/images",
            text="<html>oops</html>",
            status_code=200,
        )

        async with KittyAPIClient(backend_url) as client:
            with pytest.raises(UploadError, match="Invalid backend response"):
                await client.upload_batch(make_items(1))

    async def test_attach_metadata_tolerates_failures(
        self, backend_url: str, httpx_mock: HTTPXMock
    ) -> None:
        """Test that one failed entry does not fail the others."""
        httpx_mock.add_response(
            method="POST",
            url=f"{backend_url}/api/kittys",
            match_json={"image_id": "a", "quote": "Cat (1/2)", "hour": ANY_HOUR},
            json={"id": 1},
        )
        httpx_mock.add_response(
            method="POST",
            url=f"{backend_url}/api/kittys",
            match_json={"image_id": "b", "quote": "Cat (2/2)", "hour": ANY_HOUR},
            status_code=500,
        )

        async with KittyAPIClient(backend_url) as client:
            results = await client.attach_metadata(["a", "b"], make_items(2))

        assert results == [{"id": 1}]

    async def test_client_context_manager_error(self, backend_url: str) -> None:
        """Test that client raises error when used outside context manager."""
        client = KittyAPIClient(backend_url)

        with pytest.raises(RuntimeError, match="async context manager"):
            await client.upload_batch(make_items(1))

