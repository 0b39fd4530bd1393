"""
多分区库存并发聚合

用法：
    agg = InventoryAggregator(owner_id, {730: 2, 440: 2})
    agg.start()                       # 立即返回，尚未发出任何请求
    inventories = await agg.inventories()
    csgo = await agg.get_inventory(730, 2)

运行模型：
  start() 创建一个构造任务，由它为每个 (app_id, context_id) 各启动一个分区任务；
  同时启动一个监视任务，全部分区结束后触发一次 loaded 通知。
  inventories() / get_inventory() 等待构造任务与全部分区任务结束后返回。

失败语义：
  单个分区失败只会让该分区缺席结果，不影响整体；success 仅在构造任务本身失败时为 False。
"""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from steam_inventory.core.config import settings
from steam_inventory.core.errors import ArgumentError, NotFoundError
from steam_inventory.schemas.steam import PartitionInventory
from steam_inventory.services.partition import resolve_partition
from steam_inventory.services.steam_web import SteamWeb

logger = logging.getLogger(__name__)

MAX_UINT64 = 2 ** 64 - 1
MAX_PAGE_SIZE = 5000

PartitionKey = Tuple[int, int]
Inventories = Dict[int, Dict[int, PartitionInventory]]


class PartitionStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"
    NOT_REQUESTED = "not_requested"


class InventoryStore:
    """app_id → context_id → PartitionInventory；同一分区先写入者生效"""

    def __init__(self):
        self._data: Inventories = {}
        self._lock = threading.Lock()

    def insert_if_absent(self, inventory: PartitionInventory) -> bool:
        with self._lock:
            contexts = self._data.setdefault(inventory.app_id, {})
            if inventory.context_id in contexts:
                return False
            contexts[inventory.context_id] = inventory
            return True

    def get(self, app_id: int, context_id: int) -> Optional[PartitionInventory]:
        with self._lock:
            return self._data.get(app_id, {}).get(context_id)

    def snapshot(self) -> Inventories:
        with self._lock:
            return {app_id: dict(contexts) for app_id, contexts in self._data.items()}

    def __contains__(self, key: PartitionKey) -> bool:
        return self.get(*key) is not None


# ------------------------------------------------------------------ #
#  参数校验                                                             #
# ------------------------------------------------------------------ #

def _check_int(value, name: str, low: int, high: int) -> int:
    if isinstance(value, bool):
        raise ArgumentError(f"{name} 必须是整数: {value!r}")
    if isinstance(value, str) and value.isdecimal():
        value = int(value)
    if not isinstance(value, int):
        raise ArgumentError(f"{name} 必须是整数: {value!r}")
    if not low <= value <= high:
        raise ArgumentError(f"{name} 超出范围 [{low}, {high}]: {value}")
    return int(value)


def normalize_partitions(
    partitions: Optional[Mapping[int, Union[int, Iterable[int]]]],
) -> List[PartitionKey]:
    """{app_id: context_id | [context_id, ...]} → 去重后的 [(app_id, context_id), ...]"""
    if partitions is None:
        raise ArgumentError("partitions 不能为空")
    if not partitions:
        raise ArgumentError("partitions 至少需要一个 app_id → context_id")

    if not isinstance(partitions, Mapping):
        raise ArgumentError(f"partitions 必须是 app_id → context_id 映射: {partitions!r}")

    keys: List[PartitionKey] = []
    for app_id, contexts in partitions.items():
        app_id = _check_int(app_id, "app_id", 1, 2 ** 32 - 1)
        if isinstance(contexts, (int, str)):
            contexts = [contexts]
        try:
            contexts = list(contexts)
        except TypeError:
            raise ArgumentError(f"app_id={app_id} 的 context_id 非法: {contexts!r}") from None
        if not contexts:
            raise ArgumentError(f"app_id={app_id} 没有 context_id")
        for context_id in contexts:
            key = (app_id, _check_int(context_id, "context_id", 0, MAX_UINT64))
            if key not in keys:
                keys.append(key)
    return keys


# ------------------------------------------------------------------ #
#  聚合器                                                               #
# ------------------------------------------------------------------ #

class InventoryAggregator:

    def __init__(
        self,
        owner_id: Union[int, str],
        partitions: Mapping[int, Union[int, Iterable[int]]],
        page_size: Optional[int] = None,
        start_assetid: str = "",
        *,
        web: Optional[SteamWeb] = None,
        max_pages: Optional[int] = None,
        on_loaded: Optional[Callable[["InventoryAggregator"], None]] = None,
    ):
        self.owner_id = _check_int(owner_id, "owner_id", 1, MAX_UINT64)
        self.partition_keys = normalize_partitions(partitions)
        self.page_size = _check_int(
            settings.inventory_page_size if page_size is None else page_size,
            "page_size", 1, MAX_PAGE_SIZE,
        )
        self.start_assetid = start_assetid or ""
        self.max_pages = max_pages

        self.success = True
        self.loaded = asyncio.Event()
        self._on_loaded = on_loaded

        self._store = InventoryStore()
        self._status: Dict[PartitionKey, PartitionStatus] = {
            key: PartitionStatus.PENDING for key in self.partition_keys
        }
        self._tasks: Dict[PartitionKey, asyncio.Task] = {}
        self._construct_task: Optional[asyncio.Task] = None
        self._watch_task: Optional[asyncio.Task] = None

        self._web = web
        self._owns_web = web is None

    @classmethod
    def fetch_inventories(
        cls,
        owner_id: Union[int, str],
        partitions: Mapping[int, Union[int, Iterable[int]]],
        page_size: Optional[int] = None,
        start_assetid: str = "",
        **kwargs,
    ) -> "InventoryAggregator":
        aggregator = cls(owner_id, partitions, page_size, start_assetid, **kwargs)
        aggregator.start()
        return aggregator

    # ---------- 启动 ----------

    def start(self) -> None:
        """需要在运行中的事件循环内调用；重复调用无效"""
        if self._construct_task is not None:
            return
        if self._web is None:
            self._web = SteamWeb()
        self._construct_task = asyncio.create_task(self._construct())
        self._watch_task = asyncio.create_task(self._wait_all())

    async def _construct(self) -> None:
        try:
            for key in self.partition_keys:
                self._tasks[key] = asyncio.create_task(self._resolve(*key))
        except Exception:
            self.success = False
            logger.exception("InventoryAggregator: %s 构造任务失败", self.owner_id)
            for key in self.partition_keys:
                if key not in self._tasks:
                    self._status[key] = PartitionStatus.FAILED

    async def _resolve(self, app_id: int, context_id: int) -> None:
        key = (app_id, context_id)
        try:
            inventory = await resolve_partition(
                self._web, self.owner_id, app_id, context_id,
                self.page_size, self.start_assetid, self.max_pages,
            )
        except Exception:
            logger.exception(
                "InventoryAggregator: %s %d/%d 分区任务异常", self.owner_id, app_id, context_id,
            )
            inventory = None

        if inventory is not None:
            self._store.insert_if_absent(inventory)
        # add_foreign_inventory 可能已先写入同一分区
        self._status[key] = (
            PartitionStatus.RESOLVED if key in self._store else PartitionStatus.FAILED
        )

    # ---------- 等待 + 完成通知 ----------

    async def _wait_all(self) -> None:
        await self._construct_task
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        try:
            if self._owns_web and self._web is not None:
                web, self._web = self._web, None
                await web.aclose()
        except Exception:
            logger.exception("InventoryAggregator: %s 关闭 HTTP 客户端失败", self.owner_id)
        finally:
            self._notify_loaded()

    def _notify_loaded(self) -> None:
        if self.loaded.is_set():
            return
        self.loaded.set()
        resolved = sum(1 for s in self._status.values() if s is PartitionStatus.RESOLVED)
        logger.info(
            "InventoryAggregator: %s 完成  resolved=%d/%d  success=%s",
            self.owner_id, resolved, len(self.partition_keys), self.success,
        )
        if self._on_loaded is not None:
            try:
                self._on_loaded(self)
            except Exception:
                logger.exception("InventoryAggregator: %s on_loaded 回调异常", self.owner_id)

    async def inventories(self) -> Inventories:
        """等待全部分区结束，返回调用方独占的结果副本"""
        self.start()
        await asyncio.shield(self._watch_task)
        return self._store.snapshot()

    async def get_inventory(self, app_id: int, context_id: int) -> PartitionInventory:
        inventories = await self.inventories()
        inventory = inventories.get(app_id, {}).get(context_id)
        if inventory is None:
            raise NotFoundError(app_id, context_id)
        return inventory

    def status(self, app_id: int, context_id: int) -> PartitionStatus:
        return self._status.get((app_id, context_id), PartitionStatus.NOT_REQUESTED)

    # ---------- 追加其他用户的库存 ----------

    async def add_foreign_inventory(
        self,
        owner_id: Union[int, str],
        app_id: int,
        context_id: int,
    ) -> Optional[PartitionInventory]:
        """
        拉取另一个分区（可属于其他 Steam 用户）并按先写入者生效规则加入结果。
        返回最终存于结果中的分区，拉取失败返回 None。
        """
        owner_id = _check_int(owner_id, "owner_id", 1, MAX_UINT64)
        ((app_id, context_id),) = normalize_partitions({app_id: context_id})
        key = (app_id, context_id)

        if self._owns_web:
            async with SteamWeb() as web:
                inventory = await resolve_partition(
                    web, owner_id, app_id, context_id,
                    settings.inventory_foreign_page_size, max_pages=self.max_pages,
                )
        else:
            inventory = await resolve_partition(
                self._web, owner_id, app_id, context_id,
                settings.inventory_foreign_page_size, max_pages=self.max_pages,
            )

        if inventory is not None:
            self._store.insert_if_absent(inventory)
            self._status[key] = PartitionStatus.RESOLVED
        elif key not in self._status:
            self._status[key] = PartitionStatus.FAILED
        return self._store.get(app_id, context_id)

    # ---------- 资源 ----------

    async def aclose(self) -> None:
        if self._watch_task is not None:
            await asyncio.shield(self._watch_task)
        elif self._owns_web and self._web is not None:
            await self._web.aclose()
            self._web = None

    async def __aenter__(self) -> "InventoryAggregator":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
