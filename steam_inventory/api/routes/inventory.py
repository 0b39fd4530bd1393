"""
库存聚合接口（只读，不落库）

GET /api/inventory/{owner_id}?partition=730:2&partition=440:2&count=500
    并发拉取多个分区，返回各分区状态与汇总
GET /api/inventory/{owner_id}/{app_id}/{context_id}?count=500
    拉取单个分区，返回合并后的完整物品与描述
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from steam_inventory.core.errors import ArgumentError, NotFoundError
from steam_inventory.services.aggregator import InventoryAggregator
from steam_inventory.services.steam_web import SteamWeb

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_steam_web() -> AsyncIterator[SteamWeb]:
    async with SteamWeb() as web:
        yield web


def _parse_partitions(raw: List[str]) -> Dict[int, List[int]]:
    """["730:2", "753:6"] → {730: [2], 753: [6]}"""
    partitions: Dict[int, List[int]] = {}
    for entry in raw:
        app, sep, ctx = entry.partition(":")
        if not sep or not app.strip().isdecimal() or not ctx.strip().isdecimal():
            raise HTTPException(
                status_code=400,
                detail=f"无效 partition: {entry!r}，格式为 app_id:context_id",
            )
        partitions.setdefault(int(app), []).append(int(ctx))
    return partitions


def _summary(inv) -> dict:
    return {
        "app_id": inv.app_id,
        "context_id": inv.context_id,
        "items": len(inv.items),
        "descriptions": len(inv.descriptions),
        "total_count": inv.total_count,
        "pages_fetched": inv.pages_fetched,
        "is_private": inv.is_private,
        "is_complete": inv.is_complete,
    }


@router.get("/{owner_id}")
async def aggregate_inventories(
    owner_id: str,
    partition: List[str] = Query(
        ["730:2"],
        description="app_id:context_id，可重复，如 partition=730:2&partition=753:6",
    ),
    count: Optional[int] = Query(None, ge=1, le=5000, description="单页条数"),
    web: SteamWeb = Depends(get_steam_web),
):
    try:
        agg = InventoryAggregator(owner_id, _parse_partitions(partition), count, web=web)
    except ArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    inventories = await agg.inventories()
    return {
        "owner_id": str(agg.owner_id),
        "success": agg.success,
        "status": {
            f"{app_id}:{context_id}": agg.status(app_id, context_id).value
            for app_id, context_id in agg.partition_keys
        },
        "data": [
            _summary(inv)
            for contexts in inventories.values()
            for inv in contexts.values()
        ],
    }


@router.get("/{owner_id}/{app_id}/{context_id}")
async def get_partition(
    owner_id: str,
    app_id: int,
    context_id: int,
    count: Optional[int] = Query(None, ge=1, le=5000, description="单页条数"),
    web: SteamWeb = Depends(get_steam_web),
):
    try:
        agg = InventoryAggregator(owner_id, {app_id: context_id}, count, web=web)
    except ArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        inv = await agg.get_inventory(app_id, context_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        **_summary(inv),
        "owner_id": str(inv.owner_id),
        "truncated": inv.truncated,
        "assets": [a.model_dump() for a in inv.items],
        "descriptions": [
            {**d.model_dump(include={"class_id", "instance_id", "market_hash_name", "type"}),
             "app_id": d.app_id,
             "name": d.name,
             "tradable": d.is_tradable,
             "marketable": d.is_marketable,
             "craftable": d.is_craftable}
            for d in inv.descriptions
        ],
    }
