"""Shared pytest fixtures for all tests."""

import asyncio
from typing import Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from vaulted.core.models import StreamCandidate, SourceKind, Quality
from vaulted.providers.base import SourceProvider
from vaulted.services.realdebrid import RealDebridService

RD_BASE = "https://rd.test/rest/1.0"

HASH_A = "a" * 40
HASH_B = "b" * 40
HASH_C = "c" * 40


def make_candidate(
    id: str = "c1",
    quality: Quality = Quality.FHD,
    kind: SourceKind = SourceKind.TORRENT,
    url: Optional[str] = None,
    seeds: Optional[int] = None,
    provider: str = "Torrentio",
    cached: bool = False,
    info_hash: str = HASH_A,
) -> StreamCandidate:
    return StreamCandidate(
        id=id,
        name=id,
        title=f"{id} {quality.value}",
        quality=quality,
        kind=kind,
        url=url if url is not None else f"magnet:?xt=urn:btih:{info_hash}&dn={id}",
        seeds=seeds,
        provider=provider,
        cached=cached,
    )


class FakeRealDebrid:
    """
    Scripted Real-Debrid backend for httpx.MockTransport.

    Each torrent added gets the next script from `scripts`: a list of
    (status_code, info_json) returned by successive /torrents/info calls
    (the last entry repeats).
    """
    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.scripts: List[List] = []
        self.add_status = 201
        self.select_status = 204
        self.delete_status = 204
        self.unrestrict: Dict[str, object] = {}
        self.availability: Dict[str, object] = {}
        self.availability_status = 200
        self.user = {"username": "tester", "type": "premium"}
        self._next_id = 0
        self._info: Dict[str, List] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.replace("/rest/1.0", "")
        form = parse_qs(request.content.decode()) if request.content else {}

        if path == "/torrents/addMagnet":
            if self.add_status >= 400:
                return httpx.Response(self.add_status, text="bad magnet")
            self._next_id += 1
            torrent_id = f"T{self._next_id}"
            self._info[torrent_id] = list(self.scripts.pop(0)) if self.scripts else [(200, {"status": "downloaded", "links": ["https://rd/dl/x.mkv"]})]
            return httpx.Response(self.add_status, json={"id": torrent_id, "uri": f"{RD_BASE}/torrents/info/{torrent_id}"})

        if path.startswith("/torrents/info/"):
            script = self._info[path.rsplit("/", 1)[-1]]
            status, body = script.pop(0) if len(script) > 1 else script[0]
            return httpx.Response(status, json=body)

        if path.startswith("/torrents/selectFiles/"):
            return httpx.Response(self.select_status)

        if path.startswith("/torrents/delete/"):
            return httpx.Response(self.delete_status)

        if path == "/unrestrict/link":
            link = form["link"][0]
            result = self.unrestrict.get(link, {"download": link.replace("https://rd/dl/", "https://download.rd/")})
            if isinstance(result, int):
                return httpx.Response(result, text="unrestrict failed")
            return httpx.Response(200, json=result)

        if path.startswith("/torrents/instantAvailability/"):
            if self.availability_status >= 400:
                return httpx.Response(self.availability_status, text="error")
            hashes = path.split("/")[3:]
            return httpx.Response(200, json={h: self.availability.get(h, []) for h in hashes})

        if path == "/user":
            return httpx.Response(200, json=self.user)

        return httpx.Response(404, json={"error": "unknown_ressource"})

    def requests(self, prefix: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.url.path.replace("/rest/1.0", "").startswith(prefix)]

    def form(self, request: httpx.Request) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def info(status: str, files=None, links=None, code: int = 200):
    return (code, {"status": status, "files": files or [], "links": links or []})


@pytest.fixture
def fake_rd():
    return FakeRealDebrid()


@pytest.fixture
def rd_service(fake_rd):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_rd.handler))
    return RealDebridService(base_url=RD_BASE, client=client)


@pytest.fixture
def sleeps():
    """Records requested delays instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float):
        sleeps.append(seconds)
    return _sleep


class StaticProvider(SourceProvider):
    """Provider returning canned candidates (or raising `error`)."""
    def __init__(self, id, priority, enabled=True, results=None, error=None, delay=0.0):
        self.id = id
        self.name = id.title()
        self.priority = priority
        self.default_enabled = enabled
        super().__init__()
        self.results = results or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def fetch(self, catalog_id, media_kind, season=None, episode=None):
        self.calls.append((catalog_id, media_kind, season, episode))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.results)
