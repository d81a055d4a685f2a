"""Web server, dispatcher wiring and webhook/polling startup."""

import asyncio
import logging
import signal

from aiogram import Bot, Dispatcher
from aiogram.exceptions import TelegramAPIError, TelegramNetworkError
from aiogram.webhook.aiohttp_server import SimpleRequestHandler
from aiohttp import web
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kitty_bot.aggregator import AlbumAggregator
from kitty_bot.api_client import KittyAPIClient
from kitty_bot.config import Settings
from kitty_bot.handlers import create_router
from kitty_bot.replies import HEALTH_MESSAGE, Replier
from kitty_bot.uploader import PhotoBatchProcessor, TelegramFileLinkResolver

logger = logging.getLogger(__name__)


async def health(request: web.Request) -> web.Response:
    return web.Response(text=HEALTH_MESSAGE)


def create_dispatcher(
    settings: Settings, bot: Bot, api_client: KittyAPIClient
) -> tuple[Dispatcher, AlbumAggregator]:
    """Build the dispatcher and the collaborators its handlers receive.

    Args:
        settings: Bot configuration
        bot: Telegram bot instance
        api_client: Open kitty backend client

    Returns:
        The dispatcher and the album aggregator it owns
    """
    replier = Replier(bot)
    processor = PhotoBatchProcessor(api_client, TelegramFileLinkResolver(bot), replier)
    aggregator = AlbumAggregator(processor, replier, window=settings.album_delay)

    return build_dispatcher(settings, replier, processor, aggregator), aggregator


def build_dispatcher(
    settings: Settings,
    replier: Replier,
    processor: PhotoBatchProcessor,
    aggregator: AlbumAggregator,
) -> Dispatcher:
    """Build a dispatcher whose handlers receive the given collaborators."""
    dispatcher = Dispatcher(
        settings=settings,
        replier=replier,
        processor=processor,
        aggregator=aggregator,
    )
    dispatcher.include_router(create_router())
    return dispatcher


def create_web_app(dispatcher: Dispatcher, bot: Bot, settings: Settings) -> web.Application:
    """Build the aiohttp app serving the health check and the webhook.

    Updates are handled within their webhook request, so stopping the app
    waits for handlers that are still running.
    """
    app = web.Application()
    app.router.add_get("/health", health)
    handler = SimpleRequestHandler(
        dispatcher=dispatcher, bot=bot, handle_in_background=False
    )
    handler.register(app, path=settings.webhook_path)
    return app


@retry(
    retry=retry_if_exception_type(TelegramNetworkError),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    stop=stop_after_attempt(3),
    reraise=True,
)
async def set_webhook(bot: Bot, url: str) -> None:
    """Register the webhook with Telegram.

    Raises:
        TelegramAPIError: If Telegram refuses the webhook or stays unreachable
    """
    await bot.set_webhook(url)


async def start_webhook(bot: Bot, settings: Settings) -> bool:
    """Try to switch the bot to webhook delivery.

    Returns:
        True if the webhook is registered, False if polling should be used
    """
    url = settings.webhook_url
    if settings.force_polling or url is None:
        return False

    try:
        await set_webhook(bot, url)
    except TelegramAPIError as e:
        logger.error(f"Webhook setup failed: {e}")
        return False

    logger.info(f"Webhook set to: {settings.webhook_base_url}/webhook/...")
    return True


async def serve_polling(dispatcher: Dispatcher, bot: Bot, stop: asyncio.Event) -> None:
    """Long-poll for updates until stop is set or polling dies."""
    logger.info("Fallback to polling mode")
    await bot.delete_webhook()
    polling = asyncio.create_task(
        dispatcher.start_polling(bot, handle_signals=False, close_bot_session=False)
    )
    stopped = asyncio.create_task(stop.wait())
    done, _ = await asyncio.wait(
        {polling, stopped}, return_when=asyncio.FIRST_COMPLETED
    )

    if polling in done:
        stopped.cancel()
        polling.result()
        return

    await dispatcher.stop_polling()
    await polling


async def shutdown(runner: web.AppRunner, aggregator: AlbumAggregator) -> None:
    """Stop taking updates, then flush what the aggregator still holds.

    Must run while the kitty backend client is still open.
    """
    await runner.cleanup()
    await aggregator.shutdown()


async def run(settings: Settings) -> None:
    """Run the bot until SIGINT or SIGTERM."""
    bot = Bot(token=settings.bot_token)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with KittyAPIClient(settings.backend_url, settings.api_key) as api_client:
        dispatcher, aggregator = create_dispatcher(settings, bot, api_client)
        runner = web.AppRunner(create_web_app(dispatcher, bot, settings))
        await runner.setup()
        await web.TCPSite(runner, port=settings.port).start()
        logger.info(f"Server running on port {settings.port}")

        try:
            if await start_webhook(bot, settings):
                await stop.wait()
            else:
                await serve_polling(dispatcher, bot, stop)
        finally:
            logger.info("Shutting down")
            await shutdown(runner, aggregator)
            await bot.session.close()
