import httpx
from loguru import logger
from typing import Optional, Dict, Any, List

from vaulted.core.config import settings
from vaulted.core.exceptions import RealDebridAPIError

# instantAvailability accepts at most this many hashes per call
MAX_HASHES_PER_REQUEST = 50


class RealDebridService:
    """
    Client for Real-Debrid API.
    Docs: https://api.real-debrid.com/

    Every call raises RealDebridAPIError on a transport error or a non-2xx
    answer; classifying those errors is up to the caller.
    """
    def __init__(self, base_url: str = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or settings.REALDEBRID_API_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=settings.REALDEBRID_TIMEOUT)

    async def _get_headers(self, api_key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    async def _request(self, method: str, path: str, api_key: str, data: Optional[Dict[str, str]] = None) -> httpx.Response:
        headers = await self._get_headers(api_key)
        try:
            resp = await self.client.request(method, f"{self.base_url}{path}", data=data, headers=headers)
        except httpx.HTTPError as e:
            raise RealDebridAPIError(None, f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            raise RealDebridAPIError(resp.status_code, resp.text)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise RealDebridAPIError(resp.status_code, f"Invalid JSON from Real-Debrid: {e}") from e

    @classmethod
    def _json_object(cls, resp: httpx.Response) -> Dict[str, Any]:
        data = cls._json(resp)
        if not isinstance(data, dict):
            raise RealDebridAPIError(resp.status_code, f"Unexpected payload from Real-Debrid: {type(data).__name__}")
        return data

    async def add_magnet(self, magnet: str, api_key: str) -> str:
        resp = await self._request("POST", "/torrents/addMagnet", api_key, data={"magnet": magnet})
        torrent_id = self._json_object(resp).get("id")
        if not torrent_id:
            raise RealDebridAPIError(resp.status_code, "RD did not return torrent ID")
        return str(torrent_id)

    async def get_torrent_info(self, torrent_id: str, api_key: str) -> Dict[str, Any]:
        resp = await self._request("GET", f"/torrents/info/{torrent_id}", api_key)
        return self._json_object(resp)

    async def select_files(self, torrent_id: str, files: str, api_key: str) -> None:
        await self._request("POST", f"/torrents/selectFiles/{torrent_id}", api_key, data={"files": files})

    async def unrestrict_link(self, link: str, api_key: str) -> str:
        resp = await self._request("POST", "/unrestrict/link", api_key, data={"link": link})
        download = self._json_object(resp).get("download")
        if not download:
            raise RealDebridAPIError(resp.status_code, "RD did not return a download URL")
        return download

    async def delete_torrent(self, torrent_id: str, api_key: str) -> None:
        await self._request("DELETE", f"/torrents/delete/{torrent_id}", api_key)
        logger.info(f"[RD] Deleted torrent: {torrent_id}")

    async def instant_availability(self, hashes: List[str], api_key: str) -> Dict[str, Any]:
        """
        Structure: { hash: { "rd": [ {"1": {...}, "2": {...}}, ... ] } }
        Uncached hashes come back as an empty list or an empty "rd" list.
        """
        if len(hashes) > MAX_HASHES_PER_REQUEST:
            raise ValueError(f"At most {MAX_HASHES_PER_REQUEST} hashes per request, got {len(hashes)}")
        resp = await self._request("GET", f"/torrents/instantAvailability/{'/'.join(hashes)}", api_key)
        data = self._json(resp)
        return data if isinstance(data, dict) else {}

    async def get_user(self, api_key: str) -> Dict[str, Any]:
        resp = await self._request("GET", "/user", api_key)
        return self._json_object(resp)
