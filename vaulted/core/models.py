from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class Quality(str, Enum):
    UHD = "4K"
    FHD = "1080p"
    HD = "720p"
    SD = "480p"
    UNKNOWN = "Unknown"

    @property
    def rank(self) -> int:
        return QUALITY_RANK[self]


QUALITY_RANK = {
    Quality.UHD: 4,
    Quality.FHD: 3,
    Quality.HD: 2,
    Quality.SD: 1,
    Quality.UNKNOWN: 0,
}


class SourceKind(str, Enum):
    TORRENT = "torrent"
    ACCELERATED = "accelerated"
    DIRECT = "direct"


class StreamCandidate(BaseModel):
    """One offer of a playable asset, as returned by a source provider."""
    id: str
    name: str
    title: str = ""
    quality: Quality = Quality.UNKNOWN
    kind: SourceKind
    url: str
    size: Optional[str] = None
    seeds: Optional[int] = Field(default=None, ge=0)
    provider: str
    cached: bool = False


class Resolution(BaseModel):
    candidate: StreamCandidate
    url: str
    # True when `url` is a raw magnet that the caller must hand to an external client
    external: bool = False
    attempted: List[str] = []
