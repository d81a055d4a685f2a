"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.types import PhotoSize

from kitty_bot.config import Settings
from kitty_bot.models import ReplyTarget
from kitty_bot.replies import Replier

BACKEND_URL = "https://kitty.example.com"
CHAT_ID = -100123


def make_photo(file_id: str, size: int = 1280) -> PhotoSize:
    """Build a Telegram photo size for tests."""
    return PhotoSize(
        file_id=file_id,
        file_unique_id=f"unique_{file_id}",
        width=size,
        height=size,
    )


@pytest.fixture
def backend_url() -> str:
    return BACKEND_URL


@pytest.fixture
def api_key() -> str:
    """Return a fake API key for testing."""
    return "test_api_key_123"


@pytest.fixture
def photos() -> list[PhotoSize]:
    return [make_photo(f"file_{i}") for i in range(4)]


@pytest.fixture
def origin() -> ReplyTarget:
    return ReplyTarget(chat_id=CHAT_ID, message_id=42, user_id=7, user_name="Alice")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        bot_token="123:abc",
        chat_id=CHAT_ID,
        backend_url=BACKEND_URL,
        website_url="https://kitties.example.com",
    )


@pytest.fixture
def replier() -> AsyncMock:
    """Replier double recording every reply."""
    return AsyncMock(spec=Replier)


@pytest.fixture
def api_client() -> MagicMock:
    """Kitty backend double that saves everything it receives."""
    client = MagicMock()

    async def upload_batch(items):
        return {"public_ids": [f"kitty_{i}" for i in range(len(items))]}

    client.upload_batch = AsyncMock(side_effect=upload_batch)
    return client


@pytest.fixture
def resolve_link() -> AsyncMock:
    """Link resolver returning a download URL per file id."""

    async def resolve(photo):
        return f"https://files.example.com/{photo.file_id}.jpg"

    return AsyncMock(side_effect=resolve)
