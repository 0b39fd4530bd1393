"""Steam Community 库存接口响应 Pydantic 模型 + 合并后的分区库存"""

from __future__ import annotations

from enum import IntEnum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

MAX_UINT64 = 2 ** 64 - 1
NOT_CRAFTABLE_MARKER = "( Not Usable in Crafting )"


class AppId(IntEnum):
    TF2 = 440
    DOTA2 = 570
    PORTAL2 = 620
    CSGO = 730
    SPIRAL_KNIGHTS = 99900
    H1Z1 = 295110
    STEAM = 753
    PUBG = 578080


class ContextId(IntEnum):
    # 同值成员会成为别名，故 TF2/DOTA2/CSGO/PUBG 共用 GAME
    GAME = 2
    H1Z1 = 1
    STEAM_GIFTS = 1
    STEAM_COUPONS = 3
    STEAM_COMMUNITY = 6
    STEAM_ITEM_REWARDS = 7


# ---------- assets ----------

class SteamAsset(BaseModel):
    """assets 数组中的单条记录（按全部六个字段做值相等比较）"""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    app_id: str = Field(alias="appid")
    context_id: str = Field(alias="contextid")
    asset_id: int = Field(alias="assetid", ge=0, le=MAX_UINT64)
    class_id: str = Field(alias="classid")
    instance_id: str = Field(alias="instanceid", default="0")
    amount: str = "1"


# ---------- descriptions ----------

class DescriptionLine(BaseModel):
    type: Optional[str] = None
    value: str = ""


class DescriptionAction(BaseModel):
    name: str = ""
    link: str = ""


class DescriptionTag(BaseModel):
    internal_name: Optional[str] = None
    name: Optional[str] = Field(alias="localized_tag_name", default=None)
    category: Optional[str] = None
    color: Optional[str] = None
    category_name: Optional[str] = Field(alias="localized_category_name", default=None)

    model_config = ConfigDict(populate_by_name=True)


class SteamDescription(BaseModel):
    """descriptions 数组中的单条记录"""
    model_config = ConfigDict(populate_by_name=True)

    app_id: int = Field(alias="appid")
    class_id: int = Field(alias="classid", ge=0, le=MAX_UINT64)
    instance_id: int = Field(alias="instanceid", ge=0, le=MAX_UINT64, default=0)

    display_name: str = Field(alias="name", default="")
    market_hash_name: str = ""
    market_name: Optional[str] = None
    type: Optional[str] = None
    name_color: Optional[str] = None
    background_color: Optional[str] = None

    icon_url: Optional[str] = None
    icon_url_large: Optional[str] = None
    icon_drag_url: Optional[str] = None

    # Steam 用 0/1 整数表示布尔
    currency: int = 0
    tradable: int = 0
    marketable: int = 0
    commodity: int = 0
    market_fee_app: Optional[int] = None

    descriptions: List[DescriptionLine] = Field(default_factory=list)
    actions: List[DescriptionAction] = Field(default_factory=list)
    owner_actions: List[DescriptionAction] = Field(default_factory=list)
    tags: List[DescriptionTag] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.market_name or self.display_name

    @property
    def is_currency(self) -> bool:
        return self.currency == 1

    @property
    def is_tradable(self) -> bool:
        return self.tradable == 1

    @property
    def is_marketable(self) -> bool:
        return self.marketable == 1

    @property
    def is_commodity(self) -> bool:
        return self.commodity == 1

    @property
    def is_craftable(self) -> bool:
        return not any(line.value == NOT_CRAFTABLE_MARKER for line in self.descriptions)


# ---------- 单页响应 ----------

class InventoryPage(BaseModel):
    """GET /inventory/{steamid}/{appid}/{contextid} 单页响应"""
    assets: List[SteamAsset] = Field(default_factory=list)
    descriptions: List[SteamDescription] = Field(default_factory=list)
    total_inventory_count: int = 0
    more_items: int = 0
    last_assetid: Optional[str] = None
    success: bool = True

    @property
    def has_more(self) -> bool:
        return bool(self.more_items) and bool(self.last_assetid)


# ---------- 合并后的分区库存 ----------

def _same_triple(item: SteamAsset, desc: SteamDescription) -> bool:
    return (
        str(desc.app_id) == item.app_id
        and str(desc.class_id) == item.class_id
        and str(desc.instance_id) == item.instance_id
    )


class PartitionInventory(BaseModel):
    """
    一个 (app_id, context_id) 分区的完整库存：所有分页的 assets / descriptions
    按拉取顺序拼接。
    """
    owner_id: int
    app_id: int
    context_id: int
    items: List[SteamAsset] = Field(default_factory=list)
    descriptions: List[SteamDescription] = Field(default_factory=list)
    total_count: int = 0
    pages_fetched: int = 0
    truncated: bool = False
    is_private: bool = False

    @computed_field
    @property
    def is_complete(self) -> bool:
        return (
            not self.is_private
            and not self.truncated
            and len(self.items) >= self.total_count
        )

    def find_item(self, description: SteamDescription) -> Optional[SteamAsset]:
        """
        返回与 description 的 (appid, classid, instanceid) 匹配的物品。
        前提：最多只有一件匹配；多件匹配时返回哪一件不做保证。
        """
        return next((i for i in self.items if _same_triple(i, description)), None)

    def find_description(self, item: Optional[SteamAsset]) -> Optional[SteamDescription]:
        if item is None:
            return None
        return next((d for d in self.descriptions if _same_triple(item, d)), None)
