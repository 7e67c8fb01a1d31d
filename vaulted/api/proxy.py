import httpx
from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger
from typing import Optional

from vaulted.services.proxy import VideoProxy

router = APIRouter()


def get_proxy(request: Request) -> VideoProxy:
    return request.app.state.proxy


def _reject(proxy: VideoProxy, url: Optional[str]) -> Optional[JSONResponse]:
    if not url:
        return JSONResponse(status_code=400, content={"error": "URL parameter required"})
    try:
        allowed = proxy.is_allowed(url)
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid URL"})
    if not allowed:
        logger.warning(f"[Proxy] Refused host for {url[:60]}")
        return JSONResponse(status_code=403, content={"error": "Domain not allowed for proxying"})
    return None


@router.get("/video")
async def proxy_video(
    url: Optional[str] = None,
    range_header: Optional[str] = Header(None, alias="Range"),
    proxy: VideoProxy = Depends(get_proxy)
):
    """
    Streams an allowed download URL, forwarding Range for seeking.
    """
    rejected = _reject(proxy, url)
    if rejected:
        return rejected

    try:
        upstream = await proxy.open(url, range_header)
    except httpx.HTTPError as e:
        logger.error(f"[Proxy] Upstream request failed: {e}")
        return JSONResponse(status_code=502, content={"error": "Proxy failed"})

    if upstream.status_code >= 400:
        await upstream.aclose()
        logger.warning(f"[Proxy] Upstream returned {upstream.status_code}")
        return JSONResponse(status_code=upstream.status_code, content={"error": "Failed to fetch video"})

    headers = proxy.media_headers(upstream)
    status_code = 206 if "Content-Range" in headers else 200
    return StreamingResponse(proxy.iter_body(upstream), status_code=status_code, headers=headers)


@router.head("/video")
async def head_video(url: Optional[str] = None, proxy: VideoProxy = Depends(get_proxy)):
    """
    Checks that an allowed URL is reachable, without a body.
    """
    rejected = _reject(proxy, url)
    if rejected:
        return Response(status_code=rejected.status_code)

    try:
        upstream = await proxy.head(url)
    except httpx.HTTPError as e:
        logger.error(f"[Proxy] HEAD failed: {e}")
        return Response(status_code=502)

    if upstream.status_code >= 400:
        return Response(status_code=upstream.status_code)
    return Response(status_code=200, headers=proxy.media_headers(upstream, with_range=False))
