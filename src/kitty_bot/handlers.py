"""Inbound event routing.

Every handler drops events from chats other than the configured one before
doing anything else. Collaborators arrive through the dispatcher's workflow
data (settings, replier, processor, aggregator).
"""

import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import ErrorEvent, InlineKeyboardButton, InlineKeyboardMarkup, Message

from kitty_bot.aggregator import AlbumAggregator
from kitty_bot.config import Settings
from kitty_bot.models import ReplyTarget
from kitty_bot.replies import (
    DEFAULT_MESSAGE,
    UNEXPECTED_ERROR_MESSAGE,
    Replier,
    gallery_message,
)
from kitty_bot.uploader import PhotoBatchProcessor
from kitty_bot.utils import is_authorized, largest_photo

logger = logging.getLogger(__name__)


async def handle_get(message: Message, settings: Settings, replier: Replier) -> None:
    """Point the chat at the gallery."""
    if not is_authorized(message.chat.id, settings.chat_id):
        return

    keyboard = None
    if settings.website_url:
        keyboard = InlineKeyboardMarkup(
            inline_keyboard=[
                [InlineKeyboardButton(text="Open Gallery", url=settings.website_url)]
            ]
        )
    await replier.send_html(
        message.chat.id, gallery_message(settings.website_url), reply_markup=keyboard
    )


async def handle_photo(
    message: Message,
    settings: Settings,
    processor: PhotoBatchProcessor,
    aggregator: AlbumAggregator,
) -> None:
    """Upload a single photo, or buffer it when it belongs to an album."""
    if not is_authorized(message.chat.id, settings.chat_id):
        return

    photo = largest_photo(message.photo)
    origin = ReplyTarget.from_message(message)

    if message.media_group_id:
        aggregator.on_photo_arrived(
            message.media_group_id, photo, message.caption, origin
        )
        return

    await processor.process([photo], message.caption, origin)


async def handle_text(message: Message, settings: Settings, replier: Replier) -> None:
    if not is_authorized(message.chat.id, settings.chat_id):
        return

    origin = ReplyTarget.from_message(message)
    await replier.send_html(
        message.chat.id,
        f"Hello {origin.mention()}, {DEFAULT_MESSAGE}",
        reply_to=message.message_id,
    )


async def handle_error(event: ErrorEvent, replier: Replier) -> bool:
    """Log unexpected handler errors and tell the sender, if there is one."""
    logger.error(f"Bot error: {event.exception}", exc_info=event.exception)

    message = event.update.message
    if message is not None:
        try:
            await replier.send_text(message.chat.id, UNEXPECTED_ERROR_MESSAGE)
        except Exception as e:
            logger.error(f"Could not notify chat {message.chat.id}: {e}")
    return True


def create_router() -> Router:
    """Build a router with every handler registered.

    The command filter only looks at text messages, so a photo whose caption
    starts with "/get" still reaches the photo handler.
    """
    router = Router(name="kitty")
    router.message.register(handle_get, Command("get"), F.text)
    router.message.register(handle_photo, F.photo)
    router.message.register(handle_text, F.text)
    router.errors.register(handle_error)
    return router
