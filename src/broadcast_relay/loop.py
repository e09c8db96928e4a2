import logging
from enum import Enum
from typing import AsyncIterable

from .bot.commands import CommandKind, classify
from .bot.handlers import Dispatcher
from .errors import RelayError, StreamTerminatedError

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    POLLING = "polling"
    TERMINATED = "terminated"


class UpdateLoop:
    """Feed inbound messages to the dispatcher strictly one after another.

    A failure while handling one message, expected or not, is logged and the
    loop moves on. The stream itself ending or failing is fatal: the loop
    terminates and raises StreamTerminatedError, there is no reconnect.
    """

    def __init__(self, messages: AsyncIterable, dispatcher: Dispatcher, admin_username: str):
        self.messages = messages
        self.dispatcher = dispatcher
        self.admin_username = admin_username
        self.state = LoopState.POLLING
        self.handled = 0

    async def run(self) -> None:
        stream = self.messages.__aiter__()
        while True:
            try:
                message = await stream.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                self.state = LoopState.TERMINATED
                logger.error(f"❌ Update stream failed: {e}")
                raise StreamTerminatedError(f"update stream failed: {e}") from e
            await self.handle(message)

        self.state = LoopState.TERMINATED
        logger.error("❌ Update stream ended")
        raise StreamTerminatedError("update stream ended")

    async def handle(self, message) -> None:
        command = classify(message, self.admin_username)
        self.handled += 1
        if command.kind == CommandKind.IGNORE:
            return
        logger.info(f"📨 {command.kind.value} from chat {message.chat_id}")
        try:
            await self.dispatcher.dispatch(message, command)
        except RelayError as e:
            logger.error(f"❌ {command.kind.value} for chat {message.chat_id} failed: {e}")
        except Exception:
            logger.exception(f"❌ Unexpected error handling {command.kind.value} for chat {message.chat_id}")
