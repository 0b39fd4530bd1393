from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    steam_community_url: str = "https://steamcommunity.com"
    request_timeout: float = 30

    # 库存分页：单页条数（Steam 上限 5000）
    inventory_page_size: int = 500
    inventory_foreign_page_size: int = 5000

    # 单页请求重试：固定间隔，无指数退避
    inventory_max_retries: int = 3
    inventory_retry_delay: float = 1.0

    # 单个分区最多拉取的页数，防止服务端永远返回 more_items=1
    inventory_max_pages: int = 200

    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
