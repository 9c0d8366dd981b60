"""Application settings loaded from the environment."""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogProvider(str, Enum):
    BN = "bn"
    MEMORY = "memory"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOOKSHARE_",
        env_file=".env",
        extra="ignore",
    )

    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # ── Database ───────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./bookshare.db"
    database_echo: bool = False

    # ── Bibliographic catalog ──────────────────────
    catalog_provider: CatalogProvider = CatalogProvider.BN
    catalog_base_url: str = "https://data.bn.org.pl/api"
    catalog_timeout: float = 10.0
    catalog_retries: int = 2
    catalog_retry_backoff: float = 0.5

    # ── Session ────────────────────────────────────
    session_cookie_name: str = "firebase-session-token"
    session_max_age: int = 60 * 60 * 24 * 5
    session_secret: str = "change-me-in-production"
    session_algorithm: str = "HS256"

    # ── Recommendations ────────────────────────────
    high_rating_threshold: int = 7
    top_categories_limit: int = 3

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
