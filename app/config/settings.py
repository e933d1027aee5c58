from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations like mirroring is_admin to app_metadata

    # Auth guard
    auth_max_retries: int = 3
    auth_retry_base_delay: float = 1.0  # seconds; delay before retry n is base * 2**n
    auth_cache_ttl_seconds: int = 60
    auth_cache_max_size: int = 500

    # Storage buckets
    product_images_bucket: str = "products"
    product_images_fallback_bucket: str = "images"
    max_image_size_mb: int = 5

    # QR codes and analytics
    qr_code_length: int = 8
    qr_analytics_days: int = 30
    top_products_limit: int = 10

    # App
    app_name: str = "mipartner-backend"
    app_url: str = "http://localhost:3000"  # public front end URL, used to build product links
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    login_rate_limit: str = "10/minute"
    scan_rate_limit: str = "30/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def product_url(self, id_or_slug: str) -> str:
        return f"{self.app_url.rstrip('/')}/products/{id_or_slug}"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
