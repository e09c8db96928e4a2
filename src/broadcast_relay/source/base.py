from abc import ABC, abstractmethod
from typing import List

from ..models import ExternalPost


class BaseSource(ABC):
    """Abstract base class for content sources"""

    @abstractmethod
    def fetch(self) -> List[ExternalPost]:
        """Fetch posts from the source"""
        pass

    @abstractmethod
    def link_for(self, post: ExternalPost) -> str:
        """Build the deep link for a post"""
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        """Return the name of this source for logging"""
        pass
