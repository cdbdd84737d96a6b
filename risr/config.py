from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["text", "json"] = "text"
    POLL_INTERVAL_SECONDS: float = 10.0
    POLL_TIMEOUT_SECONDS: float | None = None
    AWS_REGION: str | None = None
    METRICS_TEXTFILE: str | None = None

    model_config = SettingsConfigDict(env_prefix="RISR_", env_file=".env", extra="ignore")


settings = Settings()
