import httpx
from loguru import logger
from typing import AsyncIterator, Dict, List, Optional
from urllib.parse import urlsplit

from vaulted.core.config import settings

DEFAULT_CONTENT_TYPE = "video/mp4"


class VideoProxy:
    """
    Relays resolved download URLs to players that cannot fetch them directly
    (CORS). Only hosts in the allowlist, or their subdomains, are proxied.
    """
    def __init__(self, allowed_hosts: Optional[List[str]] = None, client: Optional[httpx.AsyncClient] = None):
        hosts = settings.PROXY_ALLOWED_HOSTS if allowed_hosts is None else allowed_hosts
        self.allowed_hosts = [h.lower().strip(".") for h in hosts]
        self.client = client or httpx.AsyncClient(timeout=settings.PROXY_TIMEOUT, follow_redirects=True)

    def is_allowed(self, url: str) -> bool:
        """
        Raises ValueError when `url` is not an absolute http(s) URL.
        """
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        if parts.scheme not in ("http", "https") or not host:
            raise ValueError(f"Invalid URL: {url}")
        return any(host == allowed or host.endswith(f".{allowed}") for allowed in self.allowed_hosts)

    async def open(self, url: str, range_header: Optional[str] = None) -> httpx.Response:
        """
        Streaming GET; the caller owns the response and must close it.
        """
        headers = {"Range": range_header} if range_header else {}
        request = self.client.build_request("GET", url, headers=headers)
        logger.debug(f"[Proxy] GET {url[:60]}... range={range_header}")
        return await self.client.send(request, stream=True)

    async def head(self, url: str) -> httpx.Response:
        return await self.client.head(url)

    @staticmethod
    def media_headers(upstream: httpx.Response, with_range: bool = True) -> Dict[str, str]:
        headers = {
            "Content-Type": upstream.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            "Accept-Ranges": upstream.headers.get("accept-ranges") or "bytes",
        }
        if upstream.headers.get("content-length"):
            headers["Content-Length"] = upstream.headers["content-length"]
        if with_range and upstream.headers.get("content-range"):
            headers["Content-Range"] = upstream.headers["content-range"]
        return headers

    @staticmethod
    async def iter_body(upstream: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        finally:
            await upstream.aclose()
