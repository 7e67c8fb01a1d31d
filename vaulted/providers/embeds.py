from typing import List, Optional

from vaulted.core.models import StreamCandidate, SourceKind, Quality
from vaulted.providers.base import SourceProvider


def _embed(id: str, name: str, title: str, url: str, provider: str, quality: Quality = Quality.FHD) -> StreamCandidate:
    return StreamCandidate(
        id=id,
        name=name,
        title=title,
        quality=quality,
        kind=SourceKind.DIRECT,
        url=url,
        provider=provider,
    )


class VidSrcProvider(SourceProvider):
    """
    Free embed hosts. URLs are built locally, no network call is made.
    """
    id = "vidsrc"
    name = "VidSrc"
    priority = 2
    default_enabled = False

    async def fetch(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[StreamCandidate]:
        if media_kind == "movie":
            vidsrc_to = f"https://vidsrc.to/embed/movie/{catalog_id}"
            vidsrc_me = f"https://vidsrc.me/embed/movie?imdb={catalog_id}"
            embed2 = f"https://www.2embed.cc/embed/{catalog_id}"
        else:
            vidsrc_to = f"https://vidsrc.to/embed/tv/{catalog_id}/{season}/{episode}"
            vidsrc_me = f"https://vidsrc.me/embed/tv?imdb={catalog_id}&season={season}&episode={episode}"
            embed2 = f"https://www.2embed.cc/embedtv/{catalog_id}&s={season}&e={episode}"

        return [
            _embed("vidsrc-to", "VidSrc.to", "Free streaming embed", vidsrc_to, "VidSrc"),
            _embed("vidsrc-me", "VidSrc.me", "Free streaming embed (backup)", vidsrc_me, "VidSrc"),
            _embed("2embed", "2Embed", "Free streaming embed", embed2, "2Embed"),
        ]


class FreeSourcesProvider(SourceProvider):
    id = "superembed"
    name = "Free Sources"
    priority = 3
    default_enabled = False

    async def fetch(self, catalog_id: str, media_kind: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[StreamCandidate]:
        if media_kind == "movie":
            multiembed = f"https://multiembed.mov/directstream.php?video_id={catalog_id}"
            nontongo = f"https://www.NontonGo.win/embed/movie/{catalog_id}"
        else:
            multiembed = f"https://multiembed.mov/directstream.php?video_id={catalog_id}&s={season}&e={episode}"
            nontongo = f"https://www.NontonGo.win/embed/tv/{catalog_id}/{season}/{episode}"

        return [
            _embed("superembed", "MultiEmbed", "Aggregated free sources", multiembed, "MultiEmbed"),
            _embed("nontongo", "NontonGo", "Free streaming", nontongo, "NontonGo", Quality.HD),
        ]
