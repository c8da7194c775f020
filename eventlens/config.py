from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    SERVICE_PORT: int = 7890
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"
    # Store used when a request does not name one: "columnar" or "relational"
    DEFAULT_STORE: Literal["columnar", "relational"] = "columnar"
    # Columnar store (DuckDB). Empty path disables the store.
    DUCKDB_PATH: str = ""
    DUCKDB_READ_ONLY: bool = True
    # Relational store (PostgreSQL). Empty DSN disables the store.
    POSTGRES_DSN: str = ""
    POSTGRES_POOL_MIN_SIZE: int = 1
    POSTGRES_POOL_MAX_SIZE: int = 10
    EVENTS_TABLE: str = "events"
    QUERY_TIMEOUT_SECONDS: float = 30.0
    # Paging
    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 1000
    CHART_PAGE_SIZE: int = 1000
    CORS_ORIGINS: str = "*"  # Comma-separated list of allowed origins
    # Readiness thresholds; disk is measured where DUCKDB_PATH lives
    HEALTH_MIN_DISK_GB: float = 1.0
    HEALTH_MIN_MEMORY_MB: float = 50.0
    # Client settings
    API_BASE_URL: str = "http://localhost:7890"
    CLIENT_TIMEOUT_SECONDS: float = 30.0

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
