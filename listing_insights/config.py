from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache

from .constants import BULK_FETCH_ITEM_DELAY, DEFAULT_REQUEST_TIMEOUT, OPENAI_MODEL_VISION


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "development"

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = OPENAI_MODEL_VISION

    # ScrapeOps
    scrapeops_api_key: Optional[str] = None

    # API Security
    allowed_api_keys: str = ""

    # Orchestration
    request_timeout: Optional[float] = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        description="Wall-clock budget in seconds for one endpoint call (unset = unbounded)"
    )
    bulk_fetch_item_delay: float = Field(
        default=BULK_FETCH_ITEM_DELAY,
        description="Pause in seconds between consecutive items of a bulk fetch"
    )

    @property
    def api_keys_set(self) -> set[str]:
        return {k.strip() for k in self.allowed_api_keys.split(",") if k.strip()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
