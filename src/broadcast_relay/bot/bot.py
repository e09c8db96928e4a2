import asyncio
import logging
from typing import AsyncIterator, Optional, Set

from telegram import Bot, Update
from telegram.error import Forbidden, TelegramError
from telegram.request import HTTPXRequest

from ..errors import SendError
from ..models import InboundMessage

logger = logging.getLogger(__name__)

# Telegram API timeouts (seconds)
CONNECT_TIMEOUT = 30.0
READ_TIMEOUT = 30.0
WRITE_TIMEOUT = 30.0
POOL_TIMEOUT = 10.0

# Long polling wait passed to getUpdates (seconds)
POLL_TIMEOUT = 30


class TelegramBot:
    """Telegram bot wrapper: inbound update stream and outbound sender"""

    def __init__(self, token: str, bot: Optional[Bot] = None):
        self.token = token
        self.bot: Bot = bot or self._build_bot(token)
        self._offset: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()

    @staticmethod
    def _build_bot(token: str) -> Bot:
        request = HTTPXRequest(
            connection_pool_size=64,
            connect_timeout=CONNECT_TIMEOUT,
            read_timeout=READ_TIMEOUT,
            write_timeout=WRITE_TIMEOUT,
            pool_timeout=POOL_TIMEOUT,
        )
        # getUpdates holds the connection open for POLL_TIMEOUT seconds
        updates_request = HTTPXRequest(
            connect_timeout=CONNECT_TIMEOUT,
            read_timeout=READ_TIMEOUT + POLL_TIMEOUT,
            write_timeout=WRITE_TIMEOUT,
            pool_timeout=POOL_TIMEOUT,
        )
        return Bot(token=token, request=request, get_updates_request=updates_request)

    async def start(self) -> None:
        await self.bot.initialize()
        logger.info(f"🤖 Logged in as @{self.bot.username}")

    async def stop(self) -> None:
        await self.drain()
        await self.bot.shutdown()

    async def messages(self) -> AsyncIterator[InboundMessage]:
        """Yield inbound messages one at a time, forever.

        Updates that are not plain messages (edits, callbacks, channel posts)
        are acknowledged and dropped. Errors from getUpdates propagate.
        """
        while True:
            updates = await self.bot.get_updates(
                offset=self._offset,
                timeout=POLL_TIMEOUT,
                allowed_updates=[Update.MESSAGE],
            )
            for update in updates:
                self._offset = update.update_id + 1
                message = update.message
                if message is None:
                    logger.debug(f"Ignoring non-message update {update.update_id}")
                    continue
                user = message.from_user
                yield InboundMessage(
                    chat_id=message.chat_id,
                    username=user.username if user else None,
                    text=message.text,
                )

    async def send(self, chat_id: int, text: str) -> None:
        """Send a message and wait for Telegram to accept it

        Raises:
            SendError: Telegram rejected the message or could not be reached
        """
        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise SendError(chat_id, str(e)) from e

    def spawn(self, chat_id: int, text: str) -> asyncio.Task:
        """Send a message in the background; failures are logged, never raised"""
        task = asyncio.create_task(self._deliver(chat_id, text), name=f"send_{chat_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, chat_id: int, text: str) -> bool:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
            return True
        except Forbidden:
            # Chat blocked the bot or was deleted
            logger.warning(f"Chat {chat_id} blocked the bot, skipped")
        except TelegramError as e:
            logger.error(f"Send to {chat_id} failed: {e}")
        except Exception as e:
            logger.error(f"Send to {chat_id} failed unexpectedly: {type(e).__name__}: {e}")
        return False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every background send started with spawn()"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
