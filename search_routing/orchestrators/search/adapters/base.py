"""Shared httpx plumbing for adapters: request building and error wrapping."""

import re
from datetime import datetime
from typing import Any

import httpx

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.core.config import settings
from search_routing.orchestrators.search.adapters.interface import ProviderAdapter
from search_routing.orchestrators.search.errors import ProviderCallError, ProviderTimeoutError

DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_RESULT_LIMIT = 10

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    return " ".join(_TAG_RE.sub("", text or "").split())


def parse_date(value: Any) -> datetime | None:
    """ISO date or datetime string -> datetime; anything unparseable -> None."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


class HttpProviderAdapter(ProviderAdapter):
    """Adapter that talks to its provider over HTTP through httpx."""

    default_base_url: str = ""
    default_path: str = ""
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    limit: int = DEFAULT_RESULT_LIMIT

    def endpoint(self, provider: ProviderConfig, name: str = "search") -> str:
        if name in provider.endpoints:
            path = provider.endpoints[name]
            if path.startswith(("http://", "https://")):
                return path
        else:
            path = self.default_path
        base = (provider.base_url or self.default_base_url).rstrip("/")
        return base + path if path else base

    def headers(self, provider: ProviderConfig) -> dict[str, str]:
        headers = {"User-Agent": f"search-routing/0.1 ({settings.contact_email})"}
        headers.update(provider.headers)
        return headers

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    follow_redirects=True,
                )
                response.raise_for_status()
                return response
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"{self.provider_id}: request timed out", provider=self.provider_id
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderCallError(
                f"{self.provider_id}: HTTP {e.response.status_code}",
                provider=self.provider_id,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ProviderCallError(
                f"{self.provider_id}: {type(e).__name__}: {e}", provider=self.provider_id
            ) from e

    async def get_json(self, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self.request("GET", url, **kwargs)
        return self._json(response)

    async def post_json(self, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self.request("POST", url, **kwargs)
        return self._json(response)

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderCallError(
                f"{self.provider_id}: invalid JSON response", provider=self.provider_id
            ) from e
        if not isinstance(data, dict):
            raise ProviderCallError(
                f"{self.provider_id}: unexpected response shape", provider=self.provider_id
            )
        return data
