from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from facility_navigator.errors import FetchFailed


class FacilityDirectoryClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def fetch_facilities(self) -> list[dict[str, Any]]:
        payload = await self._get_json(f"{self._base_url}/hospital")
        if not isinstance(payload, list):
            raise FetchFailed("UPSTREAM_DECODE_ERROR", "Facility list is not an array")
        return payload

    async def fetch_facility(self, facility_id: str) -> dict[str, Any]:
        payload = await self._get_json(f"{self._base_url}/hospital/{facility_id}")
        if not isinstance(payload, dict):
            raise FetchFailed("UPSTREAM_DECODE_ERROR", "Facility detail is not an object")
        return payload

    async def _get_json(self, url: str) -> Any:
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FetchFailed("UPSTREAM_TIMEOUT", "Facility service timeout") from exc
        except httpx.HTTPStatusError as exc:
            raise FetchFailed("UPSTREAM_HTTP_ERROR", "Facility service returned error") from exc
        except httpx.HTTPError as exc:
            raise FetchFailed("UPSTREAM_FAILURE", "Facility service request failed") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise FetchFailed("UPSTREAM_DECODE_ERROR", "Facility service returned invalid JSON") from exc
