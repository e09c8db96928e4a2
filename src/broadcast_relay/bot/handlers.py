import asyncio
import logging

from ..database import SubscriberStore
from ..models import InboundMessage
from ..source import BaseSource
from .broadcast import Broadcaster
from .commands import Command, CommandKind

logger = logging.getLogger(__name__)

SUBSCRIBED_TEXT = "Thank you for subscribing!"
UNSUBSCRIBED_TEXT = "You have been unsubscribed."
NOT_SUBSCRIBED_TEXT = "You are not subscribed."
BROADCAST_ACK_TEXT = "Sending to all!"
LATEST_INTRO_TEXT = "Latest posts:"


class Dispatcher:
    """Run the action for a classified command.

    Holds no state of its own: subscribers are re-read from the store on
    every command and the feed is fetched fresh on every /latest.
    """

    def __init__(self, store: SubscriberStore, sender, source: BaseSource):
        self.store = store
        self.sender = sender
        self.source = source
        self.broadcaster = Broadcaster(sender)

    async def dispatch(self, message: InboundMessage, command: Command) -> None:
        if command.kind == CommandKind.SUBSCRIBE:
            await self.subscribe(message)
        elif command.kind == CommandKind.UNSUBSCRIBE:
            await self.unsubscribe(message)
        elif command.kind == CommandKind.BROADCAST_ANNOUNCE:
            await self.announce(message, command.payload or "")
        elif command.kind == CommandKind.FETCH_AND_BROADCAST:
            await self.latest(message)

    async def subscribe(self, message: InboundMessage) -> None:
        """Handle /start - register the chat and confirm"""
        self.store.add(message.chat_id)
        await self.sender.send(message.chat_id, SUBSCRIBED_TEXT)

    async def unsubscribe(self, message: InboundMessage) -> None:
        """Handle /stop"""
        if self.store.remove(message.chat_id):
            logger.info(f"➖ Subscriber {message.chat_id} left")
            await self.sender.send(message.chat_id, UNSUBSCRIBED_TEXT)
        else:
            await self.sender.send(message.chat_id, NOT_SUBSCRIBED_TEXT)

    async def announce(self, message: InboundMessage, payload: str) -> None:
        """Acknowledge to the admin, then fan the payload out to every subscriber.

        The acknowledgment is awaited; the fan-out is not.
        """
        await self.sender.send(message.chat_id, BROADCAST_ACK_TEXT)
        if not payload:
            logger.info("Admin message has no text, nothing to broadcast")
            return
        recipients = self.store.list_all()
        self.broadcaster.broadcast(recipients, payload)

    async def latest(self, message: InboundMessage) -> None:
        """Handle /latest - preview the feed to the requesting chat only"""
        logger.info(f"📡 Fetching {self.source.get_source_name()} for {message.chat_id}")
        # Sources are blocking; keep the event loop free
        loop = asyncio.get_running_loop()
        posts = await loop.run_in_executor(None, self.source.fetch)

        await self.sender.send(message.chat_id, LATEST_INTRO_TEXT)
        for post in posts:
            await self.sender.send(message.chat_id, f"{post.title} {self.source.link_for(post)}")
