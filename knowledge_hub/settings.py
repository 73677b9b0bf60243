"""Application settings via Pydantic Settings."""

from functools import lru_cache
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Knowledge Hub"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["https://a.com","http://localhost:3000"]'
        - Comma-separated string: "https://a.com,http://localhost:3000"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []

    # Notion (remote item store)
    notion_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("NOTION_API_KEY", "NOTION_TOKEN"),
    )
    notion_database_id: str = Field(
        default="",
        validation_alias=AliasChoices("NOTION_DATABASE_ID"),
    )
    notion_reading_database_id: str = Field(
        default="",
        validation_alias=AliasChoices("NOTION_READING_DATABASE_ID"),
        description="Falls back to NOTION_DATABASE_ID when empty",
    )
    notion_version: str = Field(
        default="2022-06-28",
        validation_alias=AliasChoices("NOTION_VERSION"),
    )
    notion_base_url: str = Field(
        default="https://api.notion.com/v1",
        validation_alias=AliasChoices("NOTION_BASE_URL"),
    )
    notion_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("NOTION_TIMEOUT"),
        gt=0,
    )

    @property
    def reading_database_id(self) -> str:
        """Database holding reading entries (shared with QA when unset)."""
        return self.notion_reading_database_id or self.notion_database_id

    # Workspace (UI orchestration)
    item_store_url: str = Field(
        default="",
        validation_alias=AliasChoices("ITEM_STORE_URL"),
        description="Base URL of the REST proxy; empty means the in-process app",
    )
    item_store_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("ITEM_STORE_TIMEOUT"),
        gt=0,
    )
    cache_stale_seconds: int = Field(
        default=300,
        validation_alias=AliasChoices("CACHE_STALE_SECONDS"),
        ge=0,
        description="Advisory age after which a background refresh is preferred",
    )

    # Link summarizer
    summarize_timeout: float = Field(
        default=10.0,
        validation_alias=AliasChoices("SUMMARIZE_TIMEOUT"),
        gt=0,
    )
    summarize_user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        validation_alias=AliasChoices("SUMMARIZE_USER_AGENT"),
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
