"""Runtime settings for the kitty bot."""

from dataclasses import dataclass

from kitty_bot.aggregator import ALBUM_PROCESSING_DELAY


@dataclass(frozen=True)
class Settings:
    """Represents the bot configuration collected by the CLI."""

    bot_token: str
    chat_id: int
    backend_url: str
    api_key: str = ""
    website_url: str = ""
    port: int = 3000
    public_url: str | None = None
    project_name: str | None = None
    album_delay: float = ALBUM_PROCESSING_DELAY
    force_polling: bool = False

    def __post_init__(self) -> None:
        """Validate settings."""
        if not self.bot_token:
            raise ValueError("Bot token cannot be empty")
        if not self.backend_url:
            raise ValueError("Backend URL cannot be empty")
        if self.album_delay <= 0:
            raise ValueError("Album delay must be positive")

    @property
    def webhook_path(self) -> str:
        return f"/webhook/{self.bot_token}"

    @property
    def webhook_base_url(self) -> str | None:
        """Public base URL Telegram should deliver updates to, if known."""
        if self.public_url:
            url = self.public_url.rstrip("/")
            return url if "://" in url else f"https://{url}"
        if self.project_name:
            return f"https://{self.project_name}.up.railway.app"
        return None

    @property
    def webhook_url(self) -> str | None:
        base = self.webhook_base_url
        return f"{base}{self.webhook_path}" if base else None
