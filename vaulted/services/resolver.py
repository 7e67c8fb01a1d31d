import asyncio
from dataclasses import dataclass, field
from enum import Enum
from loguru import logger
from typing import Any, Awaitable, Callable, Dict, List, Optional

from vaulted.core.config import settings
from vaulted.core.exceptions import (
    AddMagnetError,
    DebridError,
    DebridRequestError,
    DebridTimeoutError,
    NoPlayableLinksError,
    NotCachedError,
    RealDebridAPIError,
    TorrentError,
    UnrestrictError,
)
from vaulted.services.realdebrid import RealDebridService
from vaulted.utils.parser import VideoParser

ERROR_STATUSES = ("magnet_error", "error", "virus", "dead")
NOT_CACHED_CODES = (400, 404)

Sleep = Callable[[float], Awaitable[Any]]


class ResolverState(str, Enum):
    SUBMITTED = "submitted"
    PENDING_INFO = "pending_info"
    FILES_SELECTABLE = "files_selectable"
    AWAITING_LINKS = "awaiting_links"
    READY_FOR_LINKS = "ready_for_links"
    LINKS_READY = "links_ready"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class TorrentFile:
    id: int
    path: str
    bytes: int = 0
    selected: bool = False


@dataclass
class AccelerationSession:
    """
    State of one magnet on the acceleration service. Lives only for the
    duration of a single resolve() call.
    """
    magnet: str
    remote_id: Optional[str] = None
    status: Optional[str] = None
    files: List[TorrentFile] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    state: ResolverState = ResolverState.SUBMITTED
    stream_url: Optional[str] = None

    def update(self, info: Dict[str, Any]) -> None:
        self.status = info.get("status")
        files = info.get("files")
        links = info.get("links")
        # RD File Object: {'id': 1, 'path': '/...mkv', 'bytes': 1234, 'selected': 0}
        self.files = [
            TorrentFile(
                id=f.get("id"),
                path=f.get("path") or "",
                bytes=f["bytes"] if isinstance(f.get("bytes"), int) else 0,
                selected=bool(f.get("selected")),
            )
            for f in (files if isinstance(files, list) else [])
            if isinstance(f, dict)
        ]
        self.links = [link for link in (links if isinstance(links, list) else []) if isinstance(link, str)]


class DebridResolver:
    """
    Turns one magnet into a direct stream URL:
    add magnet -> wait for info -> select files -> wait for links -> unrestrict.

    Any failure after the magnet was accepted deletes the remote torrent
    (best effort) before the DebridError propagates, except when the torrent
    already finished downloading. Cancellation cleans up the same way.
    """
    def __init__(
        self,
        service: RealDebridService,
        api_key: str,
        sleep: Sleep = asyncio.sleep,
        info_attempts: int = None,
        info_interval: float = None,
        links_attempts: int = None,
        links_interval: float = None,
        selection_delay: float = None
    ):
        self.service = service
        self.api_key = api_key
        self.sleep = sleep
        self.info_attempts = settings.INFO_POLL_ATTEMPTS if info_attempts is None else info_attempts
        self.info_interval = settings.INFO_POLL_INTERVAL if info_interval is None else info_interval
        self.links_attempts = settings.LINKS_POLL_ATTEMPTS if links_attempts is None else links_attempts
        self.links_interval = settings.LINKS_POLL_INTERVAL if links_interval is None else links_interval
        self.selection_delay = settings.FILE_SELECTION_DELAY if selection_delay is None else selection_delay

        self._handlers = {
            ResolverState.SUBMITTED: self._submit,
            ResolverState.PENDING_INFO: self._wait_for_info,
            ResolverState.FILES_SELECTABLE: self._select_files,
            ResolverState.AWAITING_LINKS: self._wait_for_links,
            ResolverState.READY_FOR_LINKS: self._wait_for_links,
            ResolverState.LINKS_READY: self._unrestrict,
        }

    async def resolve(self, magnet: str) -> str:
        session = AccelerationSession(magnet=magnet)
        try:
            while session.state != ResolverState.RESOLVED:
                next_state = await self._handlers[session.state](session)
                logger.debug(f"[RD] {session.state.value} -> {next_state.value} (torrent {session.remote_id})")
                session.state = next_state
        except DebridError as e:
            failed_in = session.state
            session.state = ResolverState.FAILED
            logger.error(f"[RD] {type(e).__name__} in {failed_in.value}: {e}")
            if e.cleanup and session.remote_id:
                await self._cleanup(session)
            raise
        except asyncio.CancelledError:
            logger.warning(f"[RD] Resolution cancelled in {session.state.value}")
            session.state = ResolverState.FAILED
            if session.remote_id:
                await self._cleanup(session)
            raise

        logger.info(f"[RD] Got download URL: {session.stream_url[:50]}...")
        return session.stream_url

    # --- States ---

    async def _submit(self, session: AccelerationSession) -> ResolverState:
        logger.info("[RD] Adding magnet...")
        add = asyncio.ensure_future(self.service.add_magnet(session.magnet, self.api_key))
        try:
            session.remote_id = await asyncio.shield(add)
        except RealDebridAPIError as e:
            raise AddMagnetError(f"Failed to add magnet: {e}") from e
        except asyncio.CancelledError:
            # The add may still land remotely; wait for its id so resolve() can delete it
            try:
                session.remote_id = await add
            except RealDebridAPIError as e:
                logger.warning(f"[RD] Add magnet failed after cancellation: {e}")
            raise
        logger.info(f"[RD] Torrent ID: {session.remote_id}")
        return ResolverState.PENDING_INFO

    async def _wait_for_info(self, session: AccelerationSession) -> ResolverState:
        def ready(s: AccelerationSession) -> Optional[ResolverState]:
            if s.status == "waiting_files_selection":
                return ResolverState.FILES_SELECTABLE
            if s.status == "downloaded":
                return ResolverState.READY_FOR_LINKS
            return None

        return await self._poll(session, self.info_attempts, self.info_interval, ready, "Torrent not ready in time")

    async def _select_files(self, session: AccelerationSession) -> ResolverState:
        file_ids = self.pick_files(session.files)
        if file_ids == "all":
            logger.error("[RD] No playable video files found in torrent, selecting all")

        try:
            await self.service.select_files(session.remote_id, file_ids, self.api_key)
        except RealDebridAPIError as e:
            # Continue anyway, might still work
            logger.warning(f"[RD] Select files failed: {e}")

        await self.sleep(self.selection_delay)
        return ResolverState.AWAITING_LINKS

    async def _wait_for_links(self, session: AccelerationSession) -> ResolverState:
        def ready(s: AccelerationSession) -> Optional[ResolverState]:
            if s.status == "downloaded" and s.links:
                return ResolverState.LINKS_READY
            return None

        return await self._poll(session, self.links_attempts, self.links_interval, ready, "Torrent download timeout")

    async def _unrestrict(self, session: AccelerationSession) -> ResolverState:
        playable = [link for link in session.links if not VideoParser.is_archive(link)]
        if not playable:
            raise NoPlayableLinksError("No playable links (only .iso or archives)")

        logger.info("[RD] Unrestricting link...")
        try:
            download = await self.service.unrestrict_link(playable[0], self.api_key)
        except RealDebridAPIError as e:
            raise UnrestrictError(f"Failed to unrestrict link: {e}") from e

        if VideoParser.is_archive(download):
            raise NoPlayableLinksError(f"Unrestricted URL is non-playable format: {download}")

        session.stream_url = download
        return ResolverState.RESOLVED

    # --- Helpers ---

    @staticmethod
    def pick_files(files: List[TorrentFile]) -> str:
        """
        Largest unselected playable video file, or "all" when there is none.
        """
        videos = [f for f in files if VideoParser.is_video_file(f.path) and not f.selected]
        if not videos:
            return "all"
        largest = max(videos, key=lambda f: f.bytes)
        logger.info(f"[RD] Selected video file: {largest.path}")
        return str(largest.id)

    async def _poll(
        self,
        session: AccelerationSession,
        attempts: int,
        interval: float,
        ready: Callable[[AccelerationSession], Optional[ResolverState]],
        timeout_message: str
    ) -> ResolverState:
        for attempt in range(attempts):
            try:
                info = await self.service.get_torrent_info(session.remote_id, self.api_key)
            except RealDebridAPIError as e:
                if e.status_code in NOT_CACHED_CODES:
                    raise NotCachedError("Torrent not cached on Real-Debrid") from e
                raise DebridRequestError(f"Failed to get torrent info: {e}") from e

            session.update(info)
            if session.status in ERROR_STATUSES:
                raise TorrentError(session.status)

            next_state = ready(session)
            if next_state:
                return next_state

            # queued, downloading, uploading, compressing, etc - wait and retry
            logger.debug(f"[RD] Torrent status: {session.status}, waiting... ({attempt + 1}/{attempts})")
            if attempt < attempts - 1:
                await self.sleep(interval)

        raise DebridTimeoutError(timeout_message)

    async def _cleanup(self, session: AccelerationSession) -> None:
        try:
            await self.service.delete_torrent(session.remote_id, self.api_key)
        except RealDebridAPIError as e:
            logger.warning(f"[RD] Failed to delete torrent {session.remote_id}: {e}")
