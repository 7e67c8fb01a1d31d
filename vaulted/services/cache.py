from loguru import logger
from typing import Callable, Dict, List, Optional, Set

from vaulted.core.exceptions import CacheCheckError, RealDebridAPIError
from vaulted.core.models import StreamCandidate, SourceKind
from vaulted.services.realdebrid import RealDebridService, MAX_HASHES_PER_REQUEST
from vaulted.utils.parser import VideoParser


def is_cached_entry(entry) -> bool:
    # Cached: {"rd": [{"1": {"filename": ..., "filesize": ...}}]}
    if not isinstance(entry, dict):
        return False
    variants = entry.get("rd") or []
    return any(variants) if isinstance(variants, list) else False


class CachePrechecker:
    """
    Marks magnet candidates the acceleration service can serve instantly.
    """
    def __init__(
        self,
        service: RealDebridService,
        credentials: Callable[[], Optional[str]],
        batch_size: int = MAX_HASHES_PER_REQUEST
    ):
        self.service = service
        self.credentials = credentials
        self.batch_size = min(batch_size, MAX_HASHES_PER_REQUEST)

    async def precheck(self, candidates: List[StreamCandidate]) -> List[StreamCandidate]:
        # position -> info hash, for magnet torrents only
        hashes_at: Dict[int, str] = {}
        for idx, c in enumerate(candidates):
            if c.kind == SourceKind.TORRENT and VideoParser.is_magnet(c.url):
                info_hash = VideoParser.get_info_hash(c.url)
                if info_hash:
                    hashes_at[idx] = info_hash

        if not hashes_at:
            return list(candidates)

        api_key = self.credentials()
        if not api_key:
            logger.debug("No Real-Debrid key configured, skipping cache check")
            return list(candidates)

        hashes = list(dict.fromkeys(hashes_at.values()))
        cached = await self.check_hashes(hashes, api_key)
        logger.info(f"Cache check: {len(cached)}/{len(hashes)} hashes instantly available")

        return [
            c.model_copy(update={"cached": hashes_at[idx] in cached}) if idx in hashes_at else c
            for idx, c in enumerate(candidates)
        ]

    async def check_hashes(self, hashes: List[str], api_key: str) -> Set[str]:
        cached: Set[str] = set()
        for i in range(0, len(hashes), self.batch_size):
            batch = hashes[i:i + self.batch_size]
            try:
                data = await self.service.instant_availability(batch, api_key)
            except RealDebridAPIError as e:
                error = CacheCheckError(f"Debrid cache batch error ({len(batch)} hashes): {e}")
                logger.warning(str(error))
                continue

            for info_hash, entry in data.items():
                if is_cached_entry(entry):
                    cached.add(info_hash.lower())
        return cached
