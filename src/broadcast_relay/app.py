import asyncio
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .bot.bot import TelegramBot
from .bot.handlers import Dispatcher
from .config import RelayConfig
from .database import SubscriberStore
from .health import HealthServer
from .loop import UpdateLoop
from .source import BaseSource, JsonFeedSource

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> None:
    """Configure logging

    - stdout, for the hosting platform's log collector
    - optionally a file rotated at midnight, kept for 30 days
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Avoid duplicate handlers when called twice
    root_logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stream_handler)

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / "relay.log",
            when="midnight",
            interval=1,
            backupCount=30,
            encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.suffix = "%Y-%m-%d"
        root_logger.addHandler(file_handler)

    # Suppress noisy library logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def create_source(config: RelayConfig) -> BaseSource:
    return JsonFeedSource(
        url=config.feed_url,
        post_base_url=config.post_base_url,
        limit=config.feed_limit,
    )


class Application:
    """Wires the relay together and runs it until the update stream dies"""

    def __init__(
        self,
        config: RelayConfig,
        bot: Optional[TelegramBot] = None,
        store: Optional[SubscriberStore] = None,
        source: Optional[BaseSource] = None,
        health: Optional[HealthServer] = None,
    ):
        self.config = config
        self.bot = bot or TelegramBot(config.bot_token)
        self.store = store or SubscriberStore(config.database_url)
        self.source = source or create_source(config)
        self.health = health or HealthServer(port=config.port)
        self.dispatcher = Dispatcher(self.store, self.bot, self.source)
        self.loop = UpdateLoop(self.bot.messages(), self.dispatcher, config.admin_username)

    def run(self) -> None:
        """Start the relay (blocking)"""
        asyncio.run(self.run_async())

    async def run_async(self) -> None:
        try:
            self.health.start()
            await self.bot.start()
            logger.info(f"🚀 Relay started, admin @{self.config.admin_username}")
            await self.loop.run()
        finally:
            await self.stop_async()

    async def stop_async(self) -> None:
        try:
            await self.bot.stop()
        except Exception as e:
            logger.error(f"Error while stopping bot: {e}")
        logger.info("🛑 Relay stopped")
