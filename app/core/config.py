# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_SERVICE_ROLE_KEY (server-side key, bypasses RLS)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_KEY (anon key)
      - CUSTOMER_APP_BASE_URLS (comma-separated storefront base URLs)
      - REVALIDATION_SECRET (shared bearer secret for storefront revalidation)
    """

    PROJECT_NAME: str = "HAEV Admin Backend"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Comma-separated list of allowed browser origins for the admin UI
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Supabase config
    SUPABASE_URL: str
    SUPABASE_KEY: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Object storage
    STORAGE_BUCKET: str = "haev-ecommerce-files"

    # Storefront revalidation
    CUSTOMER_APP_BASE_URLS: str | None = None
    REVALIDATION_SECRET: str | None = None
    REVALIDATION_TIMEOUT: float = 10.0
    REVALIDATION_MAX_CONCURRENCY: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def customer_app_base_urls(self) -> list[str]:
        """Storefront base URLs, trimmed, empties dropped."""
        if not self.CUSTOMER_APP_BASE_URLS:
            return []
        return [u.strip() for u in self.CUSTOMER_APP_BASE_URLS.split(",") if u.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
