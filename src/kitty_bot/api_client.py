"""Kitty backend client using httpx for async HTTP calls."""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import httpx

from kitty_bot.models import PhotoUploadItem

logger = logging.getLogger(__name__)

# Requests slower than this are treated as failed
REQUEST_TIMEOUT = 15.0


class KittyAPIError(Exception):
    """Base exception for kitty backend errors."""

    pass


class UploadError(KittyAPIError):
    """Exception raised when the backend rejects or never receives an upload."""

    def __init__(
        self, message: str, status_code: int | None = None, body: Any = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class KittyAPIClient:
    """Client for the kitty gallery backend."""

    def __init__(
        self, base_url: str, api_key: str = "", timeout: float = REQUEST_TIMEOUT
    ) -> None:
        """Initialize kitty backend client.

        Args:
            base_url: Backend root URL, without the "/api" suffix
            api_key: Value sent in the x-api-key header
            timeout: Per-request timeout in seconds
        """
        self.base_url = f"{base_url.rstrip('/')}/api"
        self.api_key = api_key
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "KittyAPIClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "x-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
        self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the httpx AsyncClient instance.

        Returns:
            The httpx.AsyncClient instance

        Raises:
            RuntimeError: If client is used outside of async context manager
        """
        if self._client is None:
            raise RuntimeError("Client must be used within async context manager")
        return self._client

    async def upload_batch(self, items: Sequence[PhotoUploadItem]) -> dict[str, Any]:
        """Upload a batch of photos in a single request.

        Args:
            items: Resolved photos to persist

        Returns:
            Backend response body, e.g. {"public_ids": [...]}

        Raises:
            UploadError: If the request fails or the backend rejects it
        """
        logger.info(f"Files: {[item.filename for item in items]}")
        body = {"photos": [item.to_payload() for item in items]}

        try:
            response = await self.client.post("/kittys/images", json=body)
        except httpx.RequestError as e:
            logger.error(f"Upload failed: network error: {e}")
            raise UploadError(f"Network error: {e}") from e

        if response.status_code >= 400:
            error_body = self._response_body(response)
            logger.error(
                f"Upload failed: status={response.status_code} body={error_body}"
            )
            raise UploadError(
                f"Backend returned {response.status_code}",
                status_code=response.status_code,
                body=error_body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UploadError(
                f"Invalid backend response: {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def attach_metadata(
        self, public_ids: Sequence[str], items: Sequence[PhotoUploadItem]
    ) -> list[dict[str, Any]]:
        """Create a gallery entry for each uploaded image.

        Entries are posted concurrently; a failing entry is logged and left
        out of the result.

        Args:
            public_ids: Image ids returned by upload_batch
            items: The uploaded items, aligned with public_ids

        Returns:
            Response bodies of the entries that were created
        """
        hour = datetime.now(timezone.utc).isoformat()
        tasks = [
            self._create_entry(public_id, item.caption, hour)
            for public_id, item in zip(public_ids, items)
        ]
        results = await asyncio.gather(*tasks)
        return [result for result in results if result is not None]

    async def _create_entry(
        self, public_id: str, quote: str, hour: str
    ) -> dict[str, Any] | None:
        try:
            response = await self.client.post(
                "/kittys",
                json={"image_id": public_id, "quote": quote, "hour": hour},
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed {public_id}: {e}")
            return None

    @staticmethod
    def _response_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text[:200]
