"""Configuration schema — validates collector.yml merged with the environment."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aitrainer.errors import ConfigurationError


class CollectorConfig(BaseModel):
    """Top-level configuration for the competitor collector.

    Credentials may be left empty here; the component that needs one raises
    ``ConfigurationError`` (database, completion API) or degrades (stock
    photos) when it is missing.
    """

    model_config = ConfigDict(extra="forbid")

    # Credentials / endpoints
    database_url: str = ""
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    unsplash_access_key: str = ""

    # Collection tuning
    target_competitors: int = Field(default=30, ge=1)
    request_delay_seconds: float = Field(default=2.0, ge=0)

    # Browser
    navigation_timeout_ms: int = Field(default=30_000, gt=0)
    viewport_width: int = Field(default=1920, gt=0)
    viewport_height: int = Field(default=1080, gt=0)

    # Stock photos
    stock_photos_per_page: int = Field(default=20, ge=1, le=30)

    @model_validator(mode="after")
    def check_database_scheme(self) -> "CollectorConfig":
        if self.database_url and "://" not in self.database_url:
            raise ValueError(f"database_url is not a URL: {self.database_url!r}")
        return self

    def require_database_url(self) -> str:
        if not self.database_url:
            raise ConfigurationError(
                "No database configured: set DATABASE_URL or database_url in the config file"
            )
        return self.database_url
