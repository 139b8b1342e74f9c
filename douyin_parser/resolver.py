from __future__ import annotations

from typing import Any

import httpx

from .errors import TransportError

VIDEO_DATA_PATH = "/api/hybrid/video_data"


class VideoDataClient:
    """
    Thin async wrapper around the hybrid video_data endpoint of the resolution API.

    A single request per URL: failures are not retried and surface as TransportError.
    """

    def __init__(
        self,
        api_host: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._api_host = (api_host or "").strip().rstrip("/")
        if not self._api_host:
            raise ValueError("api_host must be a non-empty string")

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def endpoint(self) -> str:
        return self._api_host + VIDEO_DATA_PATH

    async def fetch_video_data(self, url: str) -> Any:
        params = {"url": url, "minimal": False}

        try:
            response = await self._client.get(self.endpoint, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Resolution API returned HTTP {e.response.status_code} for {url}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Resolution API request failed for {url}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Resolution API returned a non-JSON body for {url}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "VideoDataClient":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()
