"""
Steam Community HTTP 传输层

fetch(url, method) -> 响应体文本
  - 网络异常 / 非 2xx  → TransportError
  - 403                → PrivateInventoryError（库存私密，不重试）
  - 429                → TransportError（由分页拉取层按固定次数重试）
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from steam_inventory.core.config import settings
from steam_inventory.core.errors import PrivateInventoryError, TransportError

logger = logging.getLogger(__name__)

_BASE_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}


class SteamWeb:
    """共享一个 httpx.AsyncClient；传入 client 时不负责关闭它"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.request_timeout,
            headers=_BASE_HEADERS,
            follow_redirects=True,
        )

    async def fetch(self, url: str, method: str = "GET") -> str:
        try:
            r = await self._client.request(method, url)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url}: {e!r}") from e

        if r.status_code == 403:
            raise PrivateInventoryError(f"{method} {url}: 库存为私密 (403)")
        if r.status_code == 429:
            raise TransportError(f"{method} {url}: Steam 请求频率过高 (429)")
        if r.is_error:
            raise TransportError(f"{method} {url}: HTTP {r.status_code}")
        return r.text

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SteamWeb":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
