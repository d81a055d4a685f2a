"""Kitty Bot - Save kitty photos sent to a Telegram chat."""

__version__ = "0.1.0"

from kitty_bot.aggregator import AlbumAggregator
from kitty_bot.api_client import KittyAPIClient
from kitty_bot.models import AlbumBuffer, BatchOutcome, PhotoUploadItem, ReplyTarget
from kitty_bot.uploader import PhotoBatchProcessor

__all__ = [
    "AlbumAggregator",
    "KittyAPIClient",
    "AlbumBuffer",
    "BatchOutcome",
    "PhotoUploadItem",
    "ReplyTarget",
    "PhotoBatchProcessor",
]
