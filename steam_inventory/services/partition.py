"""
单个 (app_id, context_id) 分区的分页合并

首页失败       → None（分区丢弃），私密库存除外：返回 is_private=True 的空库存
中途某页失败   → 保留已合并的部分，truncated=True
页数达到上限   → 同上，防止服务端永远返回 more_items=1
"""

from __future__ import annotations

import logging
from typing import List, Optional

from steam_inventory.core.config import settings
from steam_inventory.schemas.steam import PartitionInventory, SteamAsset, SteamDescription
from steam_inventory.services.page_fetcher import FailureReason, PageFailure, fetch_page
from steam_inventory.services.steam_web import SteamWeb

logger = logging.getLogger(__name__)


async def resolve_partition(
    web: SteamWeb,
    owner_id: int,
    app_id: int,
    context_id: int,
    page_size: int,
    start_assetid: str = "",
    max_pages: Optional[int] = None,
) -> Optional[PartitionInventory]:
    limit = settings.inventory_max_pages if max_pages is None else max_pages

    first = await fetch_page(web, owner_id, app_id, context_id, page_size, start_assetid)
    if isinstance(first, PageFailure):
        if first.reason is FailureReason.PRIVATE:
            return PartitionInventory(
                owner_id=owner_id, app_id=app_id, context_id=context_id, is_private=True,
            )
        logger.warning(
            "resolve_partition: %s %d/%d 首页失败 (%s)，分区丢弃",
            owner_id, app_id, context_id, first.reason.value,
        )
        return None

    items: List[SteamAsset] = list(first.assets)
    descriptions: List[SteamDescription] = list(first.descriptions)
    pages = 1
    truncated = False
    page = first
    cursor = start_assetid

    while page.has_more:
        if page.last_assetid == cursor:
            logger.warning(
                "resolve_partition: %s %d/%d 游标 %s 未前进，停止翻页",
                owner_id, app_id, context_id, cursor,
            )
            truncated = True
            break
        if pages >= limit:
            logger.warning(
                "resolve_partition: %s %d/%d 已达页数上限 %d，停止翻页",
                owner_id, app_id, context_id, limit,
            )
            truncated = True
            break

        cursor = page.last_assetid
        nxt = await fetch_page(web, owner_id, app_id, context_id, page_size, cursor)
        if isinstance(nxt, PageFailure):
            logger.warning(
                "resolve_partition: %s %d/%d 第 %d 页失败 (%s)，保留已拉取的 %d 件",
                owner_id, app_id, context_id, pages + 1, nxt.reason.value, len(items),
            )
            truncated = True
            break

        items.extend(nxt.assets)
        descriptions.extend(nxt.descriptions)
        pages += 1
        page = nxt

    logger.info(
        "resolve_partition: %s %d/%d  items=%d  total=%d  pages=%d  truncated=%s",
        owner_id, app_id, context_id, len(items), first.total_inventory_count, pages, truncated,
    )
    return PartitionInventory(
        owner_id=owner_id,
        app_id=app_id,
        context_id=context_id,
        items=items,
        descriptions=descriptions,
        total_count=first.total_inventory_count,
        pages_fetched=pages,
        truncated=truncated,
    )
