"""
单页库存拉取

端点：GET {steam_community_url}/inventory/{steamid}/{appid}/{contextid}
      ?count={page_size}[&start_assetid={cursor}]

重试策略：最多 inventory_max_retries 次，两次之间固定等待 inventory_retry_delay 秒。
全部失败时返回空响应体（不抛异常），由调用方视为软失败。
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import httpx
from pydantic import ValidationError

from steam_inventory.core.config import settings
from steam_inventory.core.errors import DecodeError, PrivateInventoryError, TransportError
from steam_inventory.schemas.steam import InventoryPage
from steam_inventory.services.steam_web import SteamWeb

logger = logging.getLogger(__name__)

INVENTORY_PATH = "/inventory/{owner_id}/{app_id}/{context_id}"


class FailureReason(str, Enum):
    TRANSPORT = "transport"
    DECODE = "decode"
    UNSUCCESSFUL = "unsuccessful"
    PRIVATE = "private"


@dataclass(frozen=True)
class PageFailure:
    reason: FailureReason
    url: str
    detail: str = ""


PageResult = Union[InventoryPage, PageFailure]


def build_inventory_url(
    owner_id: int,
    app_id: int,
    context_id: int,
    count: int,
    start_assetid: str = "",
) -> str:
    params: dict = {"count": count}
    if start_assetid:
        params["start_assetid"] = start_assetid
    path = INVENTORY_PATH.format(owner_id=owner_id, app_id=app_id, context_id=context_id)
    return str(httpx.URL(settings.steam_community_url.rstrip("/") + path, params=params))


async def retry_web_request(
    web: SteamWeb,
    url: str,
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
) -> str:
    """
    最多请求 max_retries 次，返回第一次成功的响应体；全部失败返回 ""。
    PrivateInventoryError 不重试，直接向上抛出。
    """
    attempts = settings.inventory_max_retries if max_retries is None else max_retries
    delay = settings.inventory_retry_delay if retry_delay is None else retry_delay

    for attempt in range(1, attempts + 1):
        try:
            return await web.fetch(url, "GET")
        except PrivateInventoryError:
            raise
        except TransportError as e:
            logger.warning("retry_web_request: 第 %d/%d 次失败 %s", attempt, attempts, e)

        if attempt < attempts:
            await asyncio.sleep(delay)

    return ""


def decode_page(body: str) -> InventoryPage:
    try:
        return InventoryPage.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(str(e)) from e


async def fetch_page(
    web: SteamWeb,
    owner_id: int,
    app_id: int,
    context_id: int,
    page_size: int,
    after_assetid: str = "",
) -> PageResult:
    url = build_inventory_url(owner_id, app_id, context_id, page_size, after_assetid)

    try:
        body = await retry_web_request(web, url)
    except PrivateInventoryError as e:
        logger.info("fetch_page: %s 库存私密", owner_id)
        return PageFailure(FailureReason.PRIVATE, url, str(e))

    if not body:
        logger.warning("fetch_page: %s 重试耗尽，响应为空", url)
        return PageFailure(FailureReason.TRANSPORT, url, "empty response")

    try:
        page = decode_page(body)
    except DecodeError as e:
        logger.warning("fetch_page: 无法解析 %s: %s", url, e)
        return PageFailure(FailureReason.DECODE, url, str(e))

    if not page.success:
        logger.warning("fetch_page: Steam 返回 success=false %s", url)
        return PageFailure(FailureReason.UNSUCCESSFUL, url)

    return page
