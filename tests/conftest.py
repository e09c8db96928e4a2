"""Shared test fixtures for the broadcast relay."""

from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

import pytest
from telegram.error import Forbidden, NetworkError

from broadcast_relay.bot.bot import TelegramBot
from broadcast_relay.config import RelayConfig
from broadcast_relay.database import SubscriberStore
from broadcast_relay.errors import FeedError, SendError
from broadcast_relay.models import ExternalPost
from broadcast_relay.source import BaseSource

ADMIN = "relay_admin"
ADMIN_CHAT = 777
BASE_URL = "https://news.example.com/posts"


class FakeTelegramApi:
    """Stands in for telegram.Bot: records sends, replays queued update batches."""

    def __init__(self, batches: Optional[list] = None, blocked=(), broken=()):
        self.batches = list(batches or [])
        self.blocked = set(blocked)
        self.broken = set(broken)
        self.sent: List[tuple] = []
        self.offsets: List[Optional[int]] = []
        self.username = "relay_bot"

    async def send_message(self, chat_id, text, **kwargs):
        if chat_id in self.blocked:
            raise Forbidden("Forbidden: bot was blocked by the user")
        if chat_id in self.broken:
            raise NetworkError("connection reset")
        self.sent.append((chat_id, text))

    async def get_updates(self, offset=None, timeout=None, allowed_updates=None):
        self.offsets.append(offset)
        if not self.batches:
            raise NetworkError("getUpdates failed")
        return self.batches.pop(0)

    async def initialize(self):
        pass

    async def shutdown(self):
        pass


def make_update(update_id: int, chat_id: int, text=None, username=None, message=True):
    """Build a minimal object shaped like telegram.Update."""
    if not message:
        return SimpleNamespace(update_id=update_id, message=None)
    user = SimpleNamespace(username=username) if username is not None else None
    return SimpleNamespace(
        update_id=update_id,
        message=SimpleNamespace(chat_id=chat_id, from_user=user, text=text),
    )


class FakeSender:
    """Records what the dispatcher sends, awaited and detached."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent: List[tuple] = []
        self.spawned: List[tuple] = []

    async def send(self, chat_id: int, text: str) -> None:
        if chat_id in self.failing:
            raise SendError(chat_id, "chat not found")
        self.sent.append((chat_id, text))

    def spawn(self, chat_id: int, text: str) -> None:
        self.spawned.append((chat_id, text))


class FakeSource(BaseSource):
    def __init__(self, posts=None, error: Optional[Exception] = None):
        self.posts = posts or []
        self.error = error
        self.calls = 0

    def get_source_name(self) -> str:
        return "fake feed"

    def fetch(self) -> List[ExternalPost]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.posts)

    def link_for(self, post: ExternalPost) -> str:
        return f"{BASE_URL}/{post.slug}"


@pytest.fixture
def store(tmp_path: Path) -> SubscriberStore:
    """Provide a fresh SubscriberStore backed by a temp SQLite file."""
    return SubscriberStore(f"sqlite:///{tmp_path / 'subscribers.db'}")


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def feed() -> FakeSource:
    return FakeSource([ExternalPost("A", "a"), ExternalPost("B", "b")])


@pytest.fixture
def broken_feed() -> FakeSource:
    return FakeSource(error=FeedError("cannot fetch feed: timed out"))


@pytest.fixture
def telegram_api() -> FakeTelegramApi:
    return FakeTelegramApi()


@pytest.fixture
def telegram_bot(telegram_api: FakeTelegramApi) -> TelegramBot:
    return TelegramBot("123456:TEST", bot=telegram_api)


@pytest.fixture
def env(tmp_path: Path) -> dict:
    return {
        "TELEGRAM_BOT_TOKEN": "123456789:AAHfakeTokenForTests",
        "TELEGRAM_BOT_ADMIN": ADMIN,
        "FEED_URL": "https://news.example.com/api/top.json",
        "DATABASE_URL": f"sqlite:///{tmp_path / 'relay.db'}",
    }


@pytest.fixture
def config(env: dict) -> RelayConfig:
    return RelayConfig.from_env(env)
