import httpx
from loguru import logger
from pydantic import ValidationError
from typing import Any, Dict, List, Optional, Union

from app.core.errors import UpstreamError, UpstreamErrorKind
from app.models import SubmissionResult, TorrentFile, TorrentState, TorrentStatus
from app.services.base import DebridClient

class TorBoxClient(DebridClient):
    """
    Client for TorBox.app API.
    Every call is bounded by the client timeout; failures surface as UpstreamError.
    """
    def __init__(self, base_url: str = "https://api.torbox.app/v1/api", timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _get_headers(self, api_key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    async def _request(self, method: str, endpoint: str, api_key: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = await self._get_headers(api_key)
        logger.debug(f"TorBox API Request: {method} {url}")

        try:
            resp = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"TorBox request timed out: {method} {endpoint}", kind=UpstreamErrorKind.TIMEOUT) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"TorBox request failed: {e}", kind=UpstreamErrorKind.TRANSPORT) from e

        if not resp.is_success:
            logger.error(f"TorBox API Error: {resp.status_code} {resp.text}")
            raise UpstreamError(f"TorBox API error: {resp.reason_phrase or 'request failed'}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("TorBox returned a non-JSON body", status_code=resp.status_code, kind=UpstreamErrorKind.MALFORMED) from e

        if not isinstance(data, dict):
            raise UpstreamError("TorBox returned an unexpected body", status_code=resp.status_code, kind=UpstreamErrorKind.MALFORMED)
        return data

    async def submit_magnet(self, magnet: str, api_key: str) -> SubmissionResult:
        add_payload = {
            "magnet": magnet,
            "seed": "1",
            "allow_zip": "false"
        }

        # Use data= for form-encoded
        data = await self._request("POST", "/torrents/createtorrent", api_key, data=add_payload)
        logger.info(f"TorBox Create Response: success={data.get('success')} detail={data.get('detail')}")

        if not data.get("success"):
            return SubmissionResult(success=False, detail=str(data.get("detail") or data.get("error") or "Failed to add torrent to TorBox"))

        # Newer responses nest the id under 'data', older ones return it top-level
        torrent_info = data.get("data") or {}
        torrent_id = None
        if isinstance(torrent_info, dict):
            torrent_id = torrent_info.get("torrent_id") or torrent_info.get("id")
        torrent_id = torrent_id or data.get("torrent_id")

        if not torrent_id:
            raise UpstreamError("Could not determine Torrent ID from TorBox response", kind=UpstreamErrorKind.MALFORMED)

        return SubmissionResult(success=True, torrent_id=torrent_id, detail=str(data.get("detail") or ""))

    async def get_status(self, torrent_id: Union[int, str], api_key: str) -> TorrentStatus:
        data = await self._request(
            "GET", "/torrents/mylist", api_key,
            params={"id": str(torrent_id), "bypass_cache": "true"},
        )

        # mylist?id= answers with a single object, plain mylist with a list
        entries = data.get("data") or []
        if isinstance(entries, dict):
            entries = [entries]

        target_torrent = None
        for t in entries:
            if isinstance(t, dict) and str(t.get("id", torrent_id)) == str(torrent_id):
                target_torrent = t
                break

        if not target_torrent:
            logger.warning(f"Torrent {torrent_id} not found in TorBox list")
            return TorrentStatus()

        return self._parse_status(target_torrent)

    def _parse_status(self, torrent: Dict[str, Any]) -> TorrentStatus:
        try:
            progress = float(torrent.get("progress") or 0)
        except (TypeError, ValueError):
            progress = 0.0

        try:
            files: List[TorrentFile] = []
            for f in torrent.get("files") or []:
                if not isinstance(f, dict) or f.get("id") is None:
                    continue
                files.append(TorrentFile(
                    id=f["id"],
                    name=f.get("name") or f.get("short_name") or "",
                    size=int(f.get("size") or 0),
                ))

            return TorrentStatus(
                state=TorrentState.from_upstream(torrent.get("download_state"), progress),
                progress=progress,
                finished=bool(torrent.get("download_finished")),
                files=files,
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise UpstreamError(f"TorBox returned a malformed torrent entry: {e}", kind=UpstreamErrorKind.MALFORMED) from e

    async def get_direct_link(self, torrent_id: Union[int, str], file_id: Union[int, str], api_key: str) -> str:
        link_payload = {
            "token": api_key,  # requestdl also accepts the token as a query param
            "torrent_id": torrent_id,
            "file_id": file_id,
            "zip_link": "false"
        }

        link_data = await self._request("GET", "/torrents/requestdl", api_key, params=link_payload)
        if link_data.get("success") and link_data.get("data"):
            return str(link_data["data"])

        logger.error(f"Link Request Failed: {link_data}")
        raise UpstreamError(
            str(link_data.get("detail") or "TorBox did not return a download link"),
            kind=UpstreamErrorKind.MALFORMED,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
