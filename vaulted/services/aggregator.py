"""Source aggregator: wires registry, fetcher, cache check, ranking and fallback.

Usage:
    aggregator = build_aggregator(settings)
    resolution = await aggregator.find_stream("tt0111161", "movie")
"""
import asyncio
from loguru import logger
from typing import Any, Callable, Dict, List, Optional

from vaulted.core.config import Settings
from vaulted.core.models import Resolution, StreamCandidate
from vaulted.providers.embeds import FreeSourcesProvider, VidSrcProvider
from vaulted.providers.torrentio import TorrentioProvider
from vaulted.providers.zilean import ZileanProvider
from vaulted.services.cache import CachePrechecker
from vaulted.services.fallback import FallbackOrchestrator
from vaulted.services.fetcher import SourceFetcher
from vaulted.services.ranking import rank
from vaulted.services.realdebrid import RealDebridService
from vaulted.services.registry import JsonFlagStore, MemoryFlagStore, ProviderRegistry
from vaulted.services.resolver import Sleep


class SourceAggregator:
    def __init__(
        self,
        registry: ProviderRegistry,
        service: RealDebridService,
        credentials: Callable[[], Optional[str]],
        sleep: Sleep = asyncio.sleep,
        resolve_timeout: Optional[float] = None,
        **resolver_options
    ):
        self.registry = registry
        self.service = service
        self.credentials = credentials
        self.resolve_timeout = resolve_timeout
        self.fetcher = SourceFetcher(registry)
        self.prechecker = CachePrechecker(service, credentials)
        self.orchestrator = FallbackOrchestrator(service, credentials, sleep=sleep, **resolver_options)

    async def fetch_all(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[StreamCandidate]:
        return await self.fetcher.fetch_all(catalog_id, media_kind, season, episode)

    async def precheck(self, candidates: List[StreamCandidate]) -> List[StreamCandidate]:
        return await self.prechecker.precheck(candidates)

    def rank(self, candidates: List[StreamCandidate]) -> List[StreamCandidate]:
        return rank(candidates)

    async def get_sorted_sources(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[StreamCandidate]:
        """
        Fetched, cache-checked and ranked candidates, for manual source selection.
        """
        candidates = await self.fetch_all(catalog_id, media_kind, season, episode)
        return rank(await self.precheck(candidates))

    async def resolve_best(self, candidates: List[StreamCandidate], timeout: Optional[float] = None) -> Resolution:
        return await self.orchestrator.resolve_best(candidates, timeout=timeout if timeout is not None else self.resolve_timeout)

    async def find_stream(
        self,
        catalog_id: str,
        media_kind: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> Resolution:
        candidates = await self.fetch_all(catalog_id, media_kind, season, episode)
        candidates = await self.precheck(candidates)
        return await self.resolve_best(candidates, timeout=timeout)

    async def validate_key(self, api_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Real-Debrid account info for the given (or configured) key.
        """
        key = api_key or self.credentials()
        if not key:
            return {}
        user = await self.service.get_user(key)
        logger.info(f"Real-Debrid key valid for {user.get('username')}")
        return user


def build_aggregator(settings: Settings) -> SourceAggregator:
    flag_store = JsonFlagStore(settings.PROVIDER_FLAGS_PATH) if settings.PROVIDER_FLAGS_PATH else MemoryFlagStore()
    registry = ProviderRegistry(flag_store)
    for provider in (TorrentioProvider(), VidSrcProvider(), FreeSourcesProvider(), ZileanProvider()):
        registry.register(provider)

    return SourceAggregator(
        registry,
        RealDebridService(),
        credentials=lambda: settings.REALDEBRID_API_KEY,
        resolve_timeout=settings.RESOLVE_TIMEOUT,
        info_attempts=settings.INFO_POLL_ATTEMPTS,
        info_interval=settings.INFO_POLL_INTERVAL,
        links_attempts=settings.LINKS_POLL_ATTEMPTS,
        links_interval=settings.LINKS_POLL_INTERVAL,
        selection_delay=settings.FILE_SELECTION_DELAY,
    )
