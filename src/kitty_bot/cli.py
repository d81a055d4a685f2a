"""Command-line interface for the kitty bot."""

import asyncio
import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from kitty_bot.config import Settings
from kitty_bot.server import run

app = typer.Typer(
    name="kitty-bot",
    help="Collect kitty photos from a Telegram chat and save them to the gallery",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


@app.command()
def serve(
    bot_token: str = typer.Option(
        None,
        "--bot-token",
        envvar="BOT_TOKEN",
        help="Telegram bot token (or set BOT_TOKEN env var)",
    ),
    chat_id: int = typer.Option(
        None,
        "--chat-id",
        envvar="CHAT_ID",
        help="The only chat the bot answers (or set CHAT_ID env var)",
    ),
    backend_url: str = typer.Option(
        None,
        "--backend-url",
        envvar="KITTY_BACKEND",
        help="Kitty backend root URL (or set KITTY_BACKEND env var)",
    ),
    api_key: str = typer.Option(
        "",
        "--api-key",
        envvar="API_KEY",
        help="Kitty backend API key",
    ),
    website_url: str = typer.Option(
        "",
        "--website-url",
        envvar="WEBSITE_URL",
        help="Gallery URL shown by /get",
    ),
    port: int = typer.Option(
        3000,
        "--port",
        "-p",
        envvar="PORT",
        min=1,
        max=65535,
        help="Port for the health check and webhook server",
    ),
    public_url: str = typer.Option(
        None,
        "--public-url",
        envvar=["PUBLIC_URL", "RAILWAY_STATIC_URL"],
        help="Public base URL Telegram delivers webhook updates to",
    ),
    project_name: str = typer.Option(
        None,
        "--project-name",
        envvar="RAILWAY_PROJECT_NAME",
        help="Railway project name, used to derive the public URL",
    ),
    album_delay: int = typer.Option(
        1500,
        "--album-delay",
        envvar="ALBUM_PROCESSING_DELAY",
        min=1,
        help="Milliseconds of quiet before an album is uploaded",
    ),
    polling: bool = typer.Option(
        False,
        "--polling",
        help="Use long polling even when a public URL is known",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Run the bot.

    Photos sent to CHAT_ID are uploaded to the kitty backend. Photos sent as
    an album are collected and uploaded together once the album is complete.
    """
    setup_logging(verbose)

    missing = [
        name
        for name, value in (
            ("bot token (BOT_TOKEN)", bot_token),
            ("chat id (CHAT_ID)", chat_id),
            ("backend URL (KITTY_BACKEND)", backend_url),
        )
        if value is None or value == ""
    ]
    if missing:
        console.print(f"[red]Error: missing required {', '.join(missing)}.[/red]")
        raise typer.Exit(1)

    settings = Settings(
        bot_token=bot_token,
        chat_id=chat_id,
        backend_url=backend_url,
        api_key=api_key,
        website_url=website_url,
        port=port,
        public_url=public_url,
        project_name=project_name,
        album_delay=album_delay / 1000,
        force_polling=polling,
    )
    asyncio.run(run(settings))


def main() -> None:
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
