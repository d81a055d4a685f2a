"""Photo batch processing: resolve, upload and report back to the sender."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from aiogram import Bot
from aiogram.types import PhotoSize

from kitty_bot.api_client import KittyAPIClient
from kitty_bot.models import BatchOutcome, PhotoUploadItem, ReplyTarget
from kitty_bot.replies import (
    BATCH_FAILURE_MESSAGE,
    NO_PHOTOS_MESSAGE,
    Replier,
    success_message,
)
from kitty_bot.utils import DEFAULT_CAPTION, annotate_caption, make_filename

logger = logging.getLogger(__name__)

LinkResolver = Callable[[PhotoSize], Awaitable[str]]


class BatchProcessingError(Exception):
    """Exception raised when a batch cannot be uploaded at all."""

    pass


class TelegramFileLinkResolver:
    """Turns a Telegram photo into a URL the backend can download."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def __call__(self, photo: PhotoSize) -> str:
        file = await self.bot.get_file(photo.file_id)
        if not file.file_path:
            raise BatchProcessingError(f"No file path for photo {photo.file_id}")
        return self.bot.session.api.file_url(self.bot.token, file.file_path)


class PhotoBatchProcessor:
    """Uploads batches of photos and sends one summary reply per batch."""

    def __init__(
        self,
        api_client: KittyAPIClient,
        resolve_link: LinkResolver,
        replier: Replier,
        default_caption: str = DEFAULT_CAPTION,
    ) -> None:
        """Initialize batch processor.

        Args:
            api_client: Kitty backend client
            resolve_link: Coroutine function returning the download URL of a photo
            replier: Sends the summary back to the chat
            default_caption: Caption for single photos sent without one
        """
        self.api_client = api_client
        self.resolve_link = resolve_link
        self.replier = replier
        self.default_caption = default_caption

    async def process(
        self,
        photos: Sequence[PhotoSize],
        base_caption: str | None,
        origin: ReplyTarget,
        is_album: bool = False,
    ) -> BatchOutcome:
        """Upload photos and reply with the outcome.

        Exactly one reply is sent per call. Errors are reported to the sender
        and never raised.

        Args:
            photos: Photos to upload, in the order they were sent
            base_caption: Caption written by the sender, if any
            origin: Message the reply is addressed to
            is_album: Whether the photos came as an album

        Returns:
            Outcome of the batch
        """
        if not photos:
            logger.error("No photos provided to process")
            await self._reply(origin, NO_PHOTOS_MESSAGE)
            return BatchOutcome.failed(0, is_album, "No photos provided")

        total_count = len(photos)
        try:
            items = await self._prepare_items(photos, base_caption, is_album)
            if not items:
                raise BatchProcessingError("All photo downloads failed")

            response = await self.api_client.upload_batch(items)
            success_count = len(response.get("public_ids") or [])
        except Exception as e:
            logger.error(f"Processing failed: {e}", exc_info=True)
            await self._reply(origin, BATCH_FAILURE_MESSAGE)
            return BatchOutcome.failed(total_count, is_album, e)

        outcome = BatchOutcome(
            success_count=success_count,
            total_count=total_count,
            is_album=is_album,
        )
        logger.info(
            f"Saved {success_count}/{total_count} photo(s) for chat {origin.chat_id}"
        )
        message = success_message(success_count, total_count, is_album)
        await self._reply(
            origin,
            f"Hello {origin.mention()}, {message}",
            html=True,
            reply_to=None if is_album else origin.message_id,
        )
        return outcome

    async def _reply(
        self,
        origin: ReplyTarget,
        text: str,
        html: bool = False,
        reply_to: int | None = None,
    ) -> None:
        """Send the batch reply. A failed send is logged, since the batch itself is done."""
        try:
            if html:
                await self.replier.send_html(origin.chat_id, text, reply_to=reply_to)
            else:
                await self.replier.send_text(origin.chat_id, text)
        except Exception as e:
            logger.error(f"Failed to send reply to chat {origin.chat_id}: {e}")

    async def _prepare_items(
        self,
        photos: Sequence[PhotoSize],
        base_caption: str | None,
        is_album: bool,
    ) -> list[PhotoUploadItem]:
        """Resolve photos concurrently and build upload items for the ones that resolved."""
        links = await asyncio.gather(*(self._resolve(photo) for photo in photos))
        now_ms = time.time_ns() // 1_000_000
        caption = base_caption or self.default_caption

        items: list[PhotoUploadItem] = []
        for index, (photo, link) in enumerate(zip(photos, links)):
            if link is None:
                continue
            items.append(
                PhotoUploadItem(
                    photo_url=link,
                    filename=make_filename(index, now_ms),
                    caption=(
                        annotate_caption(caption, index + 1, len(photos))
                        if is_album
                        else caption
                    ),
                    original_photo=photo,
                )
            )
        return items

    async def _resolve(self, photo: PhotoSize) -> str | None:
        try:
            return await self.resolve_link(photo)
        except Exception as e:
            logger.error(f"Failed to get file link for photo {photo.file_id}: {e}")
            return None
