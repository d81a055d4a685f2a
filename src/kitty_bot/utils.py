"""Utility functions for the kitty bot."""

import logging
import time
from collections.abc import Sequence

from aiogram.types import PhotoSize

logger = logging.getLogger(__name__)

# Caption used when the sender did not write one
DEFAULT_CAPTION = "A cutie!"


def annotate_caption(caption: str, position: int, total: int) -> str:
    """Mark a caption with the photo's place in its album.

    Args:
        caption: Album caption
        position: 1-based position of the photo in the album
        total: Number of photos in the album

    Returns:
        Caption in the form "<caption> (position/total)"
    """
    return f"{caption} ({position}/{total})"


def make_filename(index: int, now_ms: int | None = None) -> str:
    """Generate a backend filename from the current time and the photo index.

    Uniqueness is best-effort: two batches started in the same millisecond
    produce the same names.

    Args:
        index: 0-based position of the photo in its batch
        now_ms: Epoch milliseconds, defaults to the current time

    Returns:
        Filename such as "photo_1712345678901_0.jpg"
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"photo_{now_ms}_{index}.jpg"


def largest_photo(sizes: Sequence[PhotoSize]) -> PhotoSize:
    """Pick the highest resolution variant of a Telegram photo.

    Telegram lists sizes in ascending order, so this is the last one.

    Raises:
        ValueError: If the photo has no sizes
    """
    if not sizes:
        raise ValueError("Photo has no sizes")
    return sizes[-1]


def is_authorized(chat_id: int, allowed_chat_id: int) -> bool:
    """Check whether a chat may use the bot.

    Args:
        chat_id: Chat the event came from
        allowed_chat_id: The single chat the bot serves

    Returns:
        True if the chat is the allowed one, False otherwise
    """
    authorized = chat_id == allowed_chat_id
    if not authorized:
        logger.warning(f"Unauthorized access attempt from chat: {chat_id}")
    return authorized
