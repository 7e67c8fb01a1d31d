from abc import ABC, abstractmethod
from typing import List, Optional

from vaulted.core.models import StreamCandidate


class SourceProvider(ABC):
    """
    Abstract Base Class for stream source providers (Torrentio, embeds, Zilean, ...).
    """
    id: str = ""
    name: str = ""
    priority: int = 100  # Lower is fetched/listed first
    default_enabled: bool = True

    def __init__(self):
        self.enabled = self.default_enabled

    @abstractmethod
    async def fetch(
        self,
        catalog_id: str,
        media_kind: str,
        season: Optional[int] = None,
        episode: Optional[int] = None
    ) -> List[StreamCandidate]:
        """
        Returns the candidates this provider offers for a title.
        `media_kind` is "movie" or "series". Implementations should resolve
        internal failures to an empty list instead of raising.
        """
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} priority={self.priority} enabled={self.enabled}>"
