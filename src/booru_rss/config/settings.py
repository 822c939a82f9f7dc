"""Configuration management using pydantic-settings.

Supports environment variables and .env file loading.
"""

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration.

    Environment variable names match the field names, case-insensitively
    (GELBOORU_API_KEY, UPDATE_INTERVAL_MINUTES, BASE_URL, PORT, ...).
    """

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),  # .env.local overrides .env
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "booru-rss"
    log_level: str = "INFO"
    log_json: bool = False  # Set True in production for structured logs

    # Gelbooru
    gelbooru_api_url: str = Field(
        default="https://gelbooru.com/index.php",
        description="Gelbooru DAPI endpoint",
    )
    gelbooru_api_key: SecretStr | None = Field(default=None, description="Gelbooru API key")
    gelbooru_user_id: str | None = Field(default=None, description="Gelbooru user ID")
    upstream_timeout: float = Field(
        default=30,
        gt=0,
        description="Upstream request timeout in seconds",
    )
    user_agent: str = "booru-rss/2.0 (+https://gelbooru.com)"

    # Feeds
    configs_dir: Path = Field(
        default=Path("configs"),
        description="Directory holding one <feed_id>.json file per feed",
    )
    create_example_configs: bool = Field(
        default=True,
        description="Write example configs when no feed is configured",
    )
    update_interval_minutes: int = Field(
        default=10,
        ge=1,
        description="Cache TTL and scheduled sweep interval in minutes",
    )

    # Server
    base_url: str = Field(
        default="localhost",
        description="Externally visible host used in self links",
    )
    port: int = Field(default=3000, ge=1, le=65535)
    api_host: str = "0.0.0.0"

    @property
    def full_base_url(self) -> str:
        """Externally visible base URL, e.g. http://localhost:3000."""
        return f"http://{self.base_url}:{self.port}"

    @property
    def api_key_value(self) -> str | None:
        """Plain API key, or None when unset or blank."""
        if self.gelbooru_api_key is None:
            return None
        return self.gelbooru_api_key.get_secret_value() or None

    @property
    def has_credentials(self) -> bool:
        """True only when both the API key and the user ID are set."""
        return bool(self.api_key_value and self.gelbooru_user_id)


# Global singleton instance, read by the entry point only
settings = Settings()
