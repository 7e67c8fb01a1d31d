"""Tests for the built-in source providers."""

import httpx

from vaulted.core.models import Quality, SourceKind
from vaulted.providers.embeds import FreeSourcesProvider, VidSrcProvider
from vaulted.providers.torrentio import TorrentioProvider
from vaulted.providers.zilean import ZileanProvider

HASH = "0123456789abcdef0123456789abcdef01234567"

TORRENTIO_STREAMS = {
    "streams": [
        {
            "name": "Torrentio\n4k",
            "title": "Movie.2020.2160p.WEB-DL\n👤 120 💾 14.2 GB ⚙️ ThePirateBay",
            "infoHash": HASH,
            "fileIdx": 0,
            "behaviorHints": {"filename": "Movie 2020.mkv"},
        },
        {
            "name": "[RD+] Torrentio\n1080p",
            "title": "Movie.2020.1080p.BluRay\n💾 2.1 GB",
            "url": "https://torrentio.strem.fun/realdebrid/abc/movie.mkv",
        },
        {"name": "broken", "title": "no locator"},
    ]
}


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestTorrentio:
    def test_build_url(self):
        provider = TorrentioProvider(base_url="https://t.test", config="sort=qualitysize", client=_client(None))
        assert provider.build_url("tt1", "movie") == "https://t.test/sort=qualitysize/stream/movie/tt1.json"
        assert provider.build_url("tt1", "series", 1, 2) == "https://t.test/sort=qualitysize/stream/series/tt1:1:2.json"

    async def test_maps_streams(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=TORRENTIO_STREAMS)

        provider = TorrentioProvider(base_url="https://t.test", config="", client=_client(handler))
        candidates = await provider.fetch("tt1", "movie")

        assert str(requests[0].url) == "https://t.test/stream/movie/tt1.json"
        assert [c.id for c in candidates] == ["torrentio-0", "torrentio-1"]

        torrent, accelerated = candidates
        assert torrent.kind == SourceKind.TORRENT
        assert torrent.url == f"magnet:?xt=urn:btih:{HASH}&dn=Movie%202020.mkv"
        assert torrent.quality == Quality.UHD
        assert torrent.seeds == 120
        assert torrent.size == "14.2 GB"
        assert torrent.provider == "Torrentio"

        assert accelerated.kind == SourceKind.ACCELERATED
        assert accelerated.quality == Quality.FHD
        assert accelerated.seeds == 0

    async def test_responses_are_cached(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=TORRENTIO_STREAMS)

        provider = TorrentioProvider(base_url="https://t.test", client=_client(handler))
        await provider.fetch("tt1", "movie")
        await provider.fetch("tt1", "movie")

        assert len(requests) == 1

    async def test_http_error_returns_empty(self):
        provider = TorrentioProvider(base_url="https://t.test", client=_client(lambda r: httpx.Response(502)))
        assert await provider.fetch("tt1", "movie") == []


class TestZilean:
    async def test_maps_hashes_to_magnets(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[
                {"info_hash": HASH.upper(), "raw_title": "Show.S01E02.720p.HDTV", "size": "1073741824"},
                {"raw_title": "no hash"},
            ])

        provider = ZileanProvider(base_url="https://z.test", client=_client(handler))
        [candidate] = await provider.fetch("tt9", "series", 1, 2)

        assert requests[0].url.params["ImdbId"] == "tt9"
        assert requests[0].url.params["Season"] == "1"
        assert requests[0].url.params["Episode"] == "2"
        assert candidate.kind == SourceKind.TORRENT
        assert candidate.url.startswith(f"magnet:?xt=urn:btih:{HASH}&dn=")
        assert candidate.quality == Quality.HD
        assert candidate.size == "1.00 GB"

    async def test_failure_returns_empty(self):
        provider = ZileanProvider(base_url="https://z.test", client=_client(lambda r: httpx.Response(500)))
        assert await provider.fetch("tt9", "movie") == []


class TestEmbeds:
    async def test_vidsrc_movie(self):
        candidates = await VidSrcProvider().fetch("tt1", "movie")
        assert [c.url for c in candidates] == [
            "https://vidsrc.to/embed/movie/tt1",
            "https://vidsrc.me/embed/movie?imdb=tt1",
            "https://www.2embed.cc/embed/tt1",
        ]
        assert all(c.kind == SourceKind.DIRECT for c in candidates)

    async def test_free_sources_series(self):
        candidates = await FreeSourcesProvider().fetch("tt1", "series", 3, 4)
        assert candidates[0].url == "https://multiembed.mov/directstream.php?video_id=tt1&s=3&e=4"
        assert candidates[1].quality == Quality.HD

    def test_disabled_by_default(self):
        assert VidSrcProvider().enabled is False
        assert FreeSourcesProvider().enabled is False
        assert ZileanProvider(client=_client(None)).enabled is False
