from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Subscriber:
    """Chat that opted in to broadcasts"""
    chat_id: str
    created_at: datetime


@dataclass(frozen=True)
class InboundMessage:
    """One message update pulled from the bot's update stream"""
    chat_id: int
    username: Optional[str] = None
    text: Optional[str] = None


@dataclass(frozen=True)
class ExternalPost:
    """Feed item shown by /latest"""
    title: str
    slug: str
