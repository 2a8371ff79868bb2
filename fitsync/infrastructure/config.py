"""Application configuration.

Loads settings from environment variables with sensible defaults. Only the
API and infrastructure layers read ``settings``; engine components receive
an explicit ``ShopConfig`` / ``EngineConfig`` at construction time.
"""

from dataclasses import dataclass

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://fitsync:fitsync_dev_password@db:5432/fitsync"
    store_backend: str = "sql"  # "sql" or "memory"

    # Authentication
    api_key: str = "dev-api-key-change-in-production"

    # Shopify Admin API
    shopify_shop: str = ""
    shopify_admin_token: str = ""
    shopify_admin_api_version: str = "2025-07"
    shopify_timeout_seconds: float = 30.0

    # Sync pacing
    sync_delay_seconds: float = 0.25
    page_sync_delay_seconds: float = 0.12
    ingest_delay_seconds: float = 0.25

    # Query engine
    query_overfetch_multiplier: int = 5
    query_default_limit: int = 24
    query_max_limit: int = 250
    max_hierarchy_depth: int = 64

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


@dataclass(frozen=True)
class ShopConfig:
    """Credentials and endpoint of the Shopify store being synchronized."""

    shop: str
    access_token: str
    api_version: str = "2025-07"
    timeout_seconds: float = 30.0

    @property
    def domain(self) -> str:
        """Shop domain; a bare shop name gets ``.myshopify.com`` appended."""
        shop = self.shop.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
        return shop if "." in shop else f"{shop}.myshopify.com"

    @property
    def graphql_url(self) -> str:
        """Admin GraphQL endpoint."""
        return f"https://{self.domain}/admin/api/{self.api_version}/graphql.json"

    @property
    def is_configured(self) -> bool:
        return bool(self.shop and self.access_token)

    @classmethod
    def from_settings(cls, source: Settings) -> "ShopConfig":
        return cls(
            shop=source.shopify_shop,
            access_token=source.shopify_admin_token,
            api_version=source.shopify_admin_api_version,
            timeout_seconds=source.shopify_timeout_seconds,
        )


@dataclass(frozen=True)
class EngineConfig:
    """Tuning knobs of the taxonomy and fitment engine."""

    sync_delay_seconds: float = 0.25
    page_sync_delay_seconds: float = 0.12
    ingest_delay_seconds: float = 0.25
    overfetch_multiplier: int = 5
    default_limit: int = 24
    max_limit: int = 250
    max_hierarchy_depth: int = 64

    def clamp_limit(self, limit: int | None) -> int:
        """Clamp a requested page size to ``1..max_limit``."""
        if limit is None:
            return self.default_limit
        return max(1, min(limit, self.max_limit))

    @classmethod
    def from_settings(cls, source: Settings) -> "EngineConfig":
        return cls(
            sync_delay_seconds=source.sync_delay_seconds,
            page_sync_delay_seconds=source.page_sync_delay_seconds,
            ingest_delay_seconds=source.ingest_delay_seconds,
            overfetch_multiplier=source.query_overfetch_multiplier,
            default_limit=source.query_default_limit,
            max_limit=source.query_max_limit,
            max_hierarchy_depth=source.max_hierarchy_depth,
        )
