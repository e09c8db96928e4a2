import logging
from typing import Any, List

import requests

from ..errors import FeedError
from ..models import ExternalPost
from .base import BaseSource

logger = logging.getLogger(__name__)


class JsonFeedSource(BaseSource):
    """HTTP JSON feed returning a list of ``{title, slug}`` objects"""

    USER_AGENT = "BroadcastRelay/1.0"

    def __init__(self, url: str, post_base_url: str, limit: int = 10, timeout: int = 30):
        self.url = url
        self.post_base_url = post_base_url.rstrip("/")
        self.limit = limit
        self.timeout = timeout

    def get_source_name(self) -> str:
        return "JSON feed"

    def fetch(self) -> List[ExternalPost]:
        """Fetch the feed and return at most ``limit`` posts in feed order

        Raises:
            FeedError: the feed is unreachable or the payload is not a post list
        """
        try:
            resp = requests.get(
                self.url,
                headers={"Accept": "application/json", "User-Agent": self.USER_AGENT},
                timeout=self.timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise FeedError(f"cannot fetch {self.url}: {e}") from e
        except ValueError as e:
            raise FeedError(f"invalid JSON from {self.url}: {e}") from e

        return self._parse(data)[:self.limit]

    def _parse(self, data: Any) -> List[ExternalPost]:
        """Parse a feed payload, either a bare list or ``{"posts": [...]}``"""
        if isinstance(data, dict):
            data = data.get("posts")
        if not isinstance(data, list):
            raise FeedError(f"unexpected feed payload from {self.url}")

        posts = []
        for item in data:
            if not isinstance(item, dict):
                continue
            slug = item.get("slug")
            if not slug:
                logger.debug(f"Skipping feed item without slug: {item!r}")
                continue
            posts.append(ExternalPost(
                title=str(item.get("title") or ""),
                slug=str(slug)
            ))
        return posts

    def link_for(self, post: ExternalPost) -> str:
        return f"{self.post_base_url}/{post.slug}"
