"""User-facing texts and reply delivery with a plain-text fallback."""

import html
import logging
import re

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import InlineKeyboardMarkup, LinkPreviewOptions, ReplyParameters

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Please send photos of kitties!"
NO_PHOTOS_MESSAGE = "No photos detected. Please try again."
BATCH_FAILURE_MESSAGE = "❌ Failed to save your photos. Our team has been notified."
ALBUM_FAILURE_MESSAGE = "❌ Failed to save your album. Please try sending again."
UNEXPECTED_ERROR_MESSAGE = "⚠️ An unexpected error occurred. Please try again later."
HEALTH_MESSAGE = "😻 Bot is healthy"

_TAG_RE = re.compile(r"<[^>]*>?")


def strip_tags(text: str) -> str:
    """Turn an HTML reply into plain text."""
    return html.unescape(_TAG_RE.sub("", text))


def success_message(success_count: int, total_count: int, is_album: bool) -> str:
    """Summary line for a processed batch.

    Args:
        success_count: Photos the backend saved
        total_count: Photos the sender sent
        is_album: Whether the photos came as an album

    Returns:
        Full-success text when the counts match, partial-success text otherwise
    """
    if success_count == total_count:
        return f"✅ Successfully saved {'album' if is_album else 'photo'}!"
    return f"⚠️ Saved {success_count}/{total_count} photos"


def gallery_message(website_url: str) -> str:
    return (
        "🐾 Discover adorable kitties! "
        f'Click <a href="{html.escape(website_url)}">here</a> '
        "to see a random photo of kitty"
    )


class Replier:
    """Sends replies to chats through the bot."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send_html(
        self,
        chat_id: int,
        text: str,
        reply_to: int | None = None,
        reply_markup: InlineKeyboardMarkup | None = None,
    ) -> None:
        """Send an HTML message, falling back to plain text if Telegram rejects it.

        Args:
            chat_id: Destination chat
            text: HTML-formatted message
            reply_to: Message to thread the reply to
            reply_markup: Optional inline keyboard
        """
        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=ParseMode.HTML,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
                reply_parameters=self._reply_parameters(reply_to),
                reply_markup=reply_markup,
            )
        except TelegramBadRequest as e:
            logger.error(f"Failed to send message: {e}")
            await self.send_text(
                chat_id, strip_tags(text), reply_to=reply_to, reply_markup=reply_markup
            )

    async def send_text(
        self,
        chat_id: int,
        text: str,
        reply_to: int | None = None,
        reply_markup: InlineKeyboardMarkup | None = None,
    ) -> None:
        """Send a plain-text message."""
        await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            parse_mode=None,
            reply_parameters=self._reply_parameters(reply_to),
            reply_markup=reply_markup,
        )

    @staticmethod
    def _reply_parameters(reply_to: int | None) -> ReplyParameters | None:
        if reply_to is None:
            return None
        return ReplyParameters(message_id=reply_to, allow_sending_without_reply=True)
