from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QR_OFFERS_", env_file=".env", extra="ignore")

    server_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL embedded in every scan URL.",
    )
    scan_counts_file: str = "scanCounts.json"
    cors_origins: List[str] = ["*"]

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        return self.server_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
