class RelayError(Exception):
    """Base class for relay errors"""


class ConfigError(RelayError):
    """Required configuration is missing or invalid"""


class StoreError(RelayError):
    """Subscriber database could not be reached or queried"""


class FeedError(RelayError):
    """External content feed could not be fetched or parsed"""


class SendError(RelayError):
    """Telegram refused or failed to deliver a message"""

    def __init__(self, chat_id: int, message: str):
        super().__init__(f"send to {chat_id} failed: {message}")
        self.chat_id = chat_id


class StreamTerminatedError(RelayError):
    """Inbound update stream ended or failed; the process must restart"""
