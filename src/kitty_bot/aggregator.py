"""Album aggregation with an inactivity window.

Telegram delivers every photo of an album as a separate message sharing a
media_group_id, with no marker for the last one. Photos are buffered per
album and handed to the batch processor once no new photo has arrived for
the whole window.

All buffer mutation happens between suspension points of a single event
loop, so no lock is needed.
"""

import asyncio
import logging

from aiogram.types import PhotoSize

from kitty_bot.models import AlbumBuffer, BatchOutcome, ReplyTarget
from kitty_bot.replies import ALBUM_FAILURE_MESSAGE, Replier
from kitty_bot.uploader import PhotoBatchProcessor
from kitty_bot.utils import DEFAULT_CAPTION

logger = logging.getLogger(__name__)

# Seconds of quiet after the last photo before an album is flushed
ALBUM_PROCESSING_DELAY = 1.5


class AlbumAggregator:
    """Buffers album photos and flushes each album exactly once."""

    def __init__(
        self,
        processor: PhotoBatchProcessor,
        replier: Replier,
        window: float = ALBUM_PROCESSING_DELAY,
        default_caption: str = DEFAULT_CAPTION,
    ) -> None:
        """Initialize album aggregator.

        Args:
            processor: Uploads flushed albums
            replier: Reports albums that failed unexpectedly
            window: Inactivity window in seconds
            default_caption: Caption for albums sent without one
        """
        self.processor = processor
        self.replier = replier
        self.window = window
        self.default_caption = default_caption
        self._buffers: dict[str, AlbumBuffer] = {}
        self._flushes: set[asyncio.Task] = set()

    def __contains__(self, album_id: object) -> bool:
        return album_id in self._buffers

    @property
    def pending_albums(self) -> list[str]:
        """Ids of albums still waiting to be flushed."""
        return list(self._buffers)

    def on_photo_arrived(
        self,
        album_id: str,
        photo: PhotoSize,
        caption: str | None,
        origin: ReplyTarget,
    ) -> AlbumBuffer:
        """Buffer a photo and restart its album's flush countdown.

        Args:
            album_id: Telegram media_group_id
            photo: Photo to buffer
            caption: Caption of the message carrying the photo
            origin: Message the album reply goes to, taken from the first photo

        Returns:
            The album's buffer
        """
        buffer = self._buffers.get(album_id)
        if buffer is None:
            buffer = AlbumBuffer(album_id=album_id, origin=origin)
            self._buffers[album_id] = buffer
            logger.debug(f"Created buffer for album {album_id}")

        buffer.add(photo, caption)
        buffer.cancel_timer()
        buffer.pending_timer = asyncio.get_running_loop().call_later(
            self.window, self._start_flush, album_id
        )
        logger.debug(f"Album {album_id} has {len(buffer.photos)} photo(s) buffered")
        return buffer

    def _start_flush(self, album_id: str) -> None:
        task = asyncio.create_task(self.flush(album_id))
        self._flushes.add(task)
        task.add_done_callback(self._flushes.discard)

    async def flush(self, album_id: str) -> BatchOutcome | None:
        """Hand a buffered album to the processor and forget it.

        Flushing an unknown or already flushed album does nothing.

        Args:
            album_id: Album to flush

        Returns:
            Outcome of processing, or None if nothing was processed
        """
        buffer = self._buffers.pop(album_id, None)
        if buffer is None or not buffer.photos:
            return None
        buffer.cancel_timer()

        logger.info(f"Processing album {album_id} with {len(buffer.photos)} photo(s)")
        try:
            return await self.processor.process(
                buffer.photos,
                buffer.caption or self.default_caption,
                buffer.origin,
                is_album=True,
            )
        except Exception as e:
            logger.error(f"Album {album_id} processing error: {e}", exc_info=True)
            try:
                await self.replier.send_text(buffer.origin.chat_id, ALBUM_FAILURE_MESSAGE)
            except Exception as notify_error:
                logger.error(
                    f"Could not report album {album_id} failure: {notify_error}"
                )
            return None

    async def shutdown(self) -> None:
        """Flush every buffered album now and wait for running flushes."""
        for album_id in self.pending_albums:
            self._start_flush(album_id)
        if self._flushes:
            logger.info(f"Waiting for {len(self._flushes)} album flush(es)")
            await asyncio.gather(*self._flushes, return_exceptions=True)
