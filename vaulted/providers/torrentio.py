import httpx
from loguru import logger
from typing import List, Optional, Dict, Any
from async_lru import alru_cache

from vaulted.core.config import settings
from vaulted.core.models import StreamCandidate, SourceKind
from vaulted.providers.base import SourceProvider
from vaulted.utils.parser import VideoParser


class TorrentioProvider(SourceProvider):
    """
    Torrentio Stremio addon. Streams carrying an infoHash become magnet
    candidates; streams carrying a url (debrid-configured addon) are already
    accelerated links.
    """
    id = "torrentio"
    name = "Torrentio"
    priority = 1
    default_enabled = True

    def __init__(self, base_url: str = None, config: str = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__()
        self.base_url = (base_url or settings.TORRENTIO_URL).rstrip("/")
        self.config = config if config is not None else settings.TORRENTIO_CONFIG
        self.client = client or httpx.AsyncClient(timeout=15.0)
        # Per-instance cache; failures raise and are not cached
        self._fetch_streams = alru_cache(maxsize=128)(self._request_streams)

    def build_url(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> str:
        prefix = f"{self.base_url}/{self.config}" if self.config else self.base_url
        url = f"{prefix}/stream/{media_kind}/{catalog_id}"
        if media_kind == "series" and season is not None and episode is not None:
            url += f":{season}:{episode}"
        return url + ".json"

    async def fetch(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[StreamCandidate]:
        url = self.build_url(catalog_id, media_kind, season, episode)
        try:
            streams = await self._fetch_streams(url)
        except Exception as e:
            logger.error(f"[Torrentio] Fetch failed for {url}: {e}")
            return []

        candidates = []
        for idx, stream in enumerate(streams):
            candidate = self._to_candidate(idx, stream)
            if candidate:
                candidates.append(candidate)
        logger.info(f"[Torrentio] {len(candidates)} streams for {catalog_id}")
        return candidates

    async def _request_streams(self, url: str) -> tuple:
        logger.info(f"[Torrentio] Fetching: {url}")
        response = await self.client.get(url)
        response.raise_for_status()
        data = response.json()
        return tuple(data.get("streams") or [])

    def _to_candidate(self, idx: int, stream: Dict[str, Any]) -> Optional[StreamCandidate]:
        title = stream.get("title") or ""
        name = stream.get("name") or "Unknown"
        url = stream.get("url") or ""
        kind = SourceKind.ACCELERATED

        if not url and stream.get("infoHash"):
            filename = (stream.get("behaviorHints") or {}).get("filename")
            url = VideoParser.build_magnet(stream["infoHash"], filename)
            kind = SourceKind.TORRENT
        if not url:
            return None

        return StreamCandidate(
            id=f"torrentio-{idx}",
            name=name,
            title=title,
            quality=VideoParser.get_quality(title or name),
            kind=kind,
            url=url,
            size=VideoParser.get_size(title) or None,
            seeds=VideoParser.get_seeds(title),
            provider=self.name,
        )
