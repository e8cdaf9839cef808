"""Service configuration pulled from environment variables via pydantic."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

DEFAULT_UPSTREAM_URL = "https://api.open-meteo.com/v1/forecast"


class Settings(BaseSettings):
    """Environment-driven configuration for the weather relay."""
    model_config = SettingsConfigDict(env_prefix="WEATHER_RELAY_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8080
    static_dir: str = "."
    upstream_url: str = DEFAULT_UPSTREAM_URL
    upstream_timeout_seconds: float | None = None  # None: wait as long as the transport does
    expose_upstream_errors: bool = False
    log_level: str = "INFO"

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8080", "http://127.0.0.1:5500"]
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "HEAD"])
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["Origin", "Accept", "Content-Type", "X-Requested-With"]
    )

    @field_validator("upstream_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the upstream URL so query strings attach cleanly."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
