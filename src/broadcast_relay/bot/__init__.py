from .bot import TelegramBot
from .broadcast import Broadcaster, BroadcastReport
from .commands import Command, CommandKind, classify
from .handlers import Dispatcher

__all__ = [
    "TelegramBot",
    "Broadcaster",
    "BroadcastReport",
    "Command",
    "CommandKind",
    "classify",
    "Dispatcher",
]
