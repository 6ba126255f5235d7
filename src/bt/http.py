"""HTTP client for the Braintrust API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(300.0, connect=30.0)


class TransportError(RuntimeError):
    """A request failed, returned a non-success status, or sent a bad payload."""


class ApiClient:
    """Authenticated JSON client bound to one API base URL.

    Each request opens its own ``httpx.AsyncClient``, so an ``ApiClient`` can
    be shared between event loops (the CLI's and the query dispatcher's).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        org_name: str = "",
        *,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.org_name = org_name
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        body: Any,
        headers: dict[str, str] | None = None,
    ) -> Any:
        return await self._request("POST", path, json=body, headers=headers)

    async def delete(self, path: str) -> None:
        await self._request("DELETE", path, parse=False)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        parse: bool = True,
    ) -> Any:
        url = self.url(path)
        request_headers = {"Authorization": f"Bearer {self._api_key}"}
        if headers:
            request_headers.update(headers)

        logger.debug("%s %s", method, url)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.request(
                    method, url, params=params, json=json, headers=request_headers
                )
            except httpx.HTTPError as e:
                raise TransportError(f"request failed: {e}") from e

        if response.status_code >= 400:
            raise TransportError(f"request failed ({response.status_code}): {response.text}")

        if not parse:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"failed to parse response: {e}") from e
