"""库存聚合相关异常"""


class InventoryError(Exception):
    pass


class ArgumentError(InventoryError, ValueError):
    """聚合器构造参数非法（空分区表、越界 id 等），在任何请求发出前抛出"""


class TransportError(InventoryError):
    """单次 HTTP 请求失败（网络异常或非 2xx 状态码）"""


class PrivateInventoryError(TransportError):
    """Steam 返回 403：库存为私密，重试无意义"""


class DecodeError(InventoryError):
    """响应体不是合法的库存分页 JSON"""


class NotFoundError(InventoryError, LookupError):
    """请求的 (app_id, context_id) 分区不存在：未请求，或请求了但拉取失败"""

    def __init__(self, app_id: int, context_id: int):
        super().__init__(f"inventory not found: app_id={app_id} context_id={context_id}")
        self.app_id = app_id
        self.context_id = context_id
