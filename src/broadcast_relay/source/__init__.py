from .base import BaseSource
from .json_feed import JsonFeedSource

__all__ = ["BaseSource", "JsonFeedSource"]
