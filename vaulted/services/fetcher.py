import asyncio
from loguru import logger
from typing import List, Optional

from vaulted.core.exceptions import ProviderFetchError
from vaulted.core.models import StreamCandidate
from vaulted.providers.base import SourceProvider
from vaulted.services.registry import ProviderRegistry


class SourceFetcher:
    """
    Fans out to every enabled provider and waits for all of them.
    A failing provider contributes nothing; the others are unaffected.
    """
    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def fetch_all(
        self,
        catalog_id: str,
        media_kind: str,
        season: Optional[int] = None,
        episode: Optional[int] = None
    ) -> List[StreamCandidate]:
        providers = self.registry.enabled()
        if not providers:
            logger.warning("No enabled providers, nothing to fetch")
            return []

        logger.info(f"Fetching {media_kind} {catalog_id} (S{season}E{episode}) from {len(providers)} providers")
        results = await asyncio.gather(
            *(self._safe_fetch(p, catalog_id, media_kind, season, episode) for p in providers)
        )

        # gather keeps input order, so this is provider-priority order
        candidates = []
        for provider, batch in zip(providers, results):
            kept = [c for c in batch if c.url]
            if len(kept) != len(batch):
                logger.debug(f"[{provider.name}] Dropped {len(batch) - len(kept)} candidates without a locator")
            candidates.extend(kept)

        logger.info(f"Collected {len(candidates)} candidates")
        return candidates

    async def _safe_fetch(
        self,
        provider: SourceProvider,
        catalog_id: str,
        media_kind: str,
        season: Optional[int],
        episode: Optional[int]
    ) -> List[StreamCandidate]:
        try:
            result = await provider.fetch(catalog_id, media_kind, season, episode)
        except Exception as e:
            error = ProviderFetchError(f"[{provider.name}] Error fetching sources: {e}")
            logger.warning(str(error))
            return []
        return list(result or [])
