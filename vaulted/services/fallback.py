import asyncio
from loguru import logger
from typing import Callable, List, Optional

from vaulted.core.exceptions import (
    DebridError,
    ExhaustedError,
    NoCredentialError,
    ResolutionTimeoutError,
)
from vaulted.core.models import Resolution, SourceKind, StreamCandidate
from vaulted.services.ranking import rank
from vaulted.services.realdebrid import RealDebridService
from vaulted.services.resolver import DebridResolver, Sleep
from vaulted.utils.parser import VideoParser


class FallbackOrchestrator:
    """
    Walks the ranked candidates strictly in order, one acceleration
    negotiation at a time, until one of them yields a playable URL.
    """
    def __init__(
        self,
        service: RealDebridService,
        credentials: Callable[[], Optional[str]],
        sleep: Sleep = asyncio.sleep,
        **resolver_options
    ):
        self.service = service
        self.credentials = credentials
        self.sleep = sleep
        self.resolver_options = resolver_options

    async def resolve_best(self, candidates: List[StreamCandidate], timeout: Optional[float] = None) -> Resolution:
        """
        Returns the first candidate that resolves, or raises ExhaustedError.
        With `timeout`, the in-flight resolution is cancelled (its remote
        torrent is cleaned up) and ResolutionTimeoutError is raised.
        """
        if timeout is None:
            return await self._walk(candidates)
        try:
            return await asyncio.wait_for(self._walk(candidates), timeout)
        except asyncio.TimeoutError as e:
            raise ResolutionTimeoutError(f"Resolution did not finish within {timeout}s") from e

    async def _walk(self, candidates: List[StreamCandidate]) -> Resolution:
        attempted: List[str] = []
        ranked = rank(candidates)
        logger.info(f"Trying {len(ranked)} sources in order")

        for idx, candidate in enumerate(ranked, 1):
            if candidate.provider not in attempted:
                attempted.append(candidate.provider)
            logger.info(f"[{idx}/{len(ranked)}] Trying {candidate.provider}: {candidate.name} ({candidate.quality.value}, cached={candidate.cached})")

            try:
                url = await self._try(candidate)
            except NoCredentialError as e:
                logger.warning(f"{e}; handing magnet to the caller")
                return Resolution(candidate=candidate, url=candidate.url, external=True, attempted=attempted)
            except DebridError as e:
                logger.warning(f"Source {candidate.name} failed ({e}), trying next...")
                continue

            if url:
                logger.info(f"Resolved via {candidate.provider}: {candidate.name}")
                return Resolution(candidate=candidate, url=url, attempted=attempted)
            logger.warning(f"Source {candidate.name} is not playable, trying next...")

        raise ExhaustedError(attempted)

    async def _try(self, candidate: StreamCandidate) -> Optional[str]:
        url = candidate.url
        if VideoParser.is_http(url) and VideoParser.is_archive(url):
            return None

        if candidate.kind == SourceKind.DIRECT:
            return url if VideoParser.is_http(url) else None

        if candidate.kind == SourceKind.ACCELERATED:
            return url if VideoParser.is_http(url) and VideoParser.is_playable_container(url) else None

        if not VideoParser.is_magnet(url):
            return None
        api_key = self.credentials()
        if not api_key:
            raise NoCredentialError("No Real-Debrid API key configured")

        resolver = DebridResolver(self.service, api_key, sleep=self.sleep, **self.resolver_options)
        return await resolver.resolve(url)
