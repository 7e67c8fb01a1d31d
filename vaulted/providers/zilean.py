import httpx
from loguru import logger
from typing import List, Optional
from async_lru import alru_cache

from vaulted.core.config import settings
from vaulted.core.models import StreamCandidate, SourceKind
from vaulted.providers.base import SourceProvider
from vaulted.utils.parser import VideoParser


class ZileanProvider(SourceProvider):
    """
    Zilean DMM hash index. Every hit is an info hash, so every candidate is a magnet.
    """
    id = "zilean"
    name = "Zilean"
    priority = 4
    default_enabled = False

    def __init__(self, base_url: str = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__()
        self.base_url = (base_url or settings.ZILEAN_API_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=10.0)
        self._fetch_cached = alru_cache(maxsize=256)(self._search)

    async def fetch(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[StreamCandidate]:
        try:
            results = await self._fetch_cached(catalog_id, season, episode)
        except Exception as e:
            logger.error(f"Zilean Search Failed: {e}")
            return []

        candidates = []
        for res in results:
            info_hash = res.get("info_hash")
            if not info_hash:
                continue
            title = res.get("raw_title") or res.get("filename") or ""
            size_bytes = res.get("size_bytes") or res.get("size")
            try:
                size = VideoParser.format_size(int(size_bytes)) if size_bytes else None
            except (TypeError, ValueError):
                size = None
            candidates.append(StreamCandidate(
                id=f"zilean-{info_hash.lower()}",
                name=self.name,
                title=title,
                quality=VideoParser.get_quality(title),
                kind=SourceKind.TORRENT,
                url=VideoParser.build_magnet(info_hash.lower(), res.get("filename") or res.get("raw_title")),
                size=size,
                provider=self.name,
            ))
        return candidates

    async def _search(self, imdb_id: str, season: Optional[int], episode: Optional[int]) -> tuple:
        params = {"ImdbId": imdb_id}
        if season is not None: params["Season"] = season
        if episode is not None: params["Episode"] = episode

        logger.info(f"Zilean Search (Network): {self.base_url}/dmm/filtered with params {params}")
        response = await self.client.get(f"{self.base_url}/dmm/filtered", params=params)
        response.raise_for_status()

        results = response.json()
        logger.info(f"Zilean returned {len(results) if isinstance(results, list) else 0} results")
        return tuple(results) if isinstance(results, list) else ()
