from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import InboundMessage

START_COMMAND = "/start"
LATEST_COMMAND = "/latest"
STOP_COMMAND = "/stop"


class CommandKind(str, Enum):
    """What an inbound message asks the relay to do"""
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    BROADCAST_ANNOUNCE = "broadcast_announce"
    FETCH_AND_BROADCAST = "fetch_and_broadcast"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    payload: Optional[str] = None


SUBSCRIBE = Command(CommandKind.SUBSCRIBE)
UNSUBSCRIBE = Command(CommandKind.UNSUBSCRIBE)
FETCH_AND_BROADCAST = Command(CommandKind.FETCH_AND_BROADCAST)
IGNORE = Command(CommandKind.IGNORE)


def classify(message: InboundMessage, admin_username: str) -> Command:
    """Map an inbound message to a command.

    Commands are matched on the exact message text before the sender is
    looked at, so the admin can still subscribe or ask for /latest. Any other
    message from the admin is broadcast as-is. A missing username simply
    means the sender is not the admin.
    """
    text = message.text
    if text == START_COMMAND:
        return SUBSCRIBE
    if text == LATEST_COMMAND:
        return FETCH_AND_BROADCAST
    if text == STOP_COMMAND:
        return UNSUBSCRIBE
    if message.username and admin_username and message.username == admin_username:
        return Command(CommandKind.BROADCAST_ANNOUNCE, payload=text or "")
    return IGNORE
