"""Tests for data models."""

from datetime import datetime

import pytest
from aiogram.types import Chat, Message, User

from kitty_bot.models import AlbumBuffer, BatchOutcome, PhotoUploadItem, ReplyTarget

from conftest import make_photo


class TestReplyTarget:
    """Test reply target construction and mentions."""

    def test_from_message(self) -> None:
        message = Message(
            message_id=5,
            date=datetime(2024, 1, 1),
            chat=Chat(id=-1, type="group"),
            from_user=User(id=9, is_bot=False, first_name="Bob"),
        )

        target = ReplyTarget.from_message(message)

        assert target == ReplyTarget(chat_id=-1, message_id=5, user_id=9, user_name="Bob")

    def test_mention_escapes_name(self) -> None:
        target = ReplyTarget(chat_id=1, message_id=1, user_id=9, user_name="<Bob>")
        assert target.mention() == '<a href="tg://user?id=9">&lt;Bob&gt;</a>'


class TestPhotoUploadItem:
    """Test upload item validation and payload."""

    def test_payload_leaves_out_original_photo(self) -> None:
        item = PhotoUploadItem(
            photo_url="https://files.example.com/a.jpg",
            filename="photo_1_0.jpg",
            caption="Tom",
            original_photo=make_photo("a"),
        )
        assert item.to_payload() == {
            "photo_url": "https://files.example.com/a.jpg",
            "filename": "photo_1_0.jpg",
            "caption": "Tom",
        }

    def test_missing_url(self) -> None:
        with pytest.raises(ValueError, match="photo_url"):
            PhotoUploadItem(photo_url="", filename="photo_1_0.jpg", caption="Tom")


class TestAlbumBuffer:
    """Test album buffer bookkeeping."""

    def test_keeps_first_caption(self, origin: ReplyTarget) -> None:
        buffer = AlbumBuffer(album_id="album_1", origin=origin)
        buffer.add(make_photo("a"))
        buffer.add(make_photo("b"), "first")
        buffer.add(make_photo("c"), "second")

        assert [photo.file_id for photo in buffer.photos] == ["a", "b", "c"]
        assert buffer.caption == "first"


class TestBatchOutcome:
    """Test outcome status."""

    def test_statuses(self) -> None:
        assert BatchOutcome(success_count=2, total_count=2).status == "success"
        assert BatchOutcome(success_count=1, total_count=2).status == "partial"
        assert BatchOutcome.failed(2, True, "boom").status == "failed"
