"""Data models for the kitty bot."""

import asyncio
import html
from dataclasses import dataclass, field
from typing import Any

from aiogram.types import Message, PhotoSize


@dataclass(frozen=True)
class ReplyTarget:
    """Where and to whom a reply for an inbound message goes."""

    chat_id: int
    message_id: int
    user_id: int
    user_name: str

    @classmethod
    def from_message(cls, message: Message) -> "ReplyTarget":
        """Build a reply target from an inbound Telegram message.

        Args:
            message: The message that triggered the reply

        Returns:
            Reply target addressed to the message author
        """
        user = message.from_user
        if user is None:
            return cls(
                chat_id=message.chat.id,
                message_id=message.message_id,
                user_id=0,
                user_name="there",
            )
        return cls(
            chat_id=message.chat.id,
            message_id=message.message_id,
            user_id=user.id,
            user_name=user.first_name or user.username or str(user.id),
        )

    def mention(self) -> str:
        """HTML link mentioning the author."""
        return f'<a href="tg://user?id={self.user_id}">{html.escape(self.user_name)}</a>'


@dataclass(frozen=True)
class PhotoUploadItem:
    """One resolved, upload-ready photo."""

    photo_url: str
    filename: str
    caption: str
    original_photo: PhotoSize | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate upload item."""
        if not self.photo_url:
            raise ValueError("Upload item must have a photo_url")
        if not self.filename:
            raise ValueError("Upload item must have a filename")

    def to_payload(self) -> dict[str, str]:
        """Body fragment sent to the backend for this photo."""
        return {
            "photo_url": self.photo_url,
            "filename": self.filename,
            "caption": self.caption,
        }


@dataclass
class AlbumBuffer:
    """Photos of one media group waiting for the quiet period to elapse."""

    album_id: str
    origin: ReplyTarget
    photos: list[PhotoSize] = field(default_factory=list)
    caption: str | None = None
    pending_timer: asyncio.TimerHandle | None = None

    def add(self, photo: PhotoSize, caption: str | None = None) -> None:
        """Append a photo, adopting its caption if none was seen yet."""
        self.photos.append(photo)
        if caption and not self.caption:
            self.caption = caption

    def cancel_timer(self) -> None:
        if self.pending_timer is not None:
            self.pending_timer.cancel()
            self.pending_timer = None


@dataclass(frozen=True)
class BatchOutcome:
    """Result of processing one batch of photos."""

    success_count: int
    total_count: int
    is_album: bool = False
    error: str | None = None

    @property
    def status(self) -> str:
        """One of "success", "partial" or "failed"."""
        if self.error is not None:
            return "failed"
        if self.success_count == self.total_count:
            return "success"
        return "partial"

    @classmethod
    def failed(cls, total_count: int, is_album: bool, error: Any) -> "BatchOutcome":
        return cls(
            success_count=0,
            total_count=total_count,
            is_album=is_album,
            error=str(error),
        )
