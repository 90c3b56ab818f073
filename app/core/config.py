"""Configuration management for the help-center search engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # AI gateway configuration (key checked per chat turn, not at startup)
    AI_GATEWAY_API_KEY: str | None = Field(default=None, description="AI gateway API key")
    AI_GATEWAY_BASE_URL: str = Field(
        default="https://ai.gateway.lovable.dev/v1",
        description="Base URL of the OpenAI-compatible completion gateway",
    )
    CHAT_MODEL: str = Field(default="google/gemini-2.5-flash", description="Model for chat turns")
    CHAT_TIMEOUT_SECONDS: float = Field(default=60.0, description="Completion request timeout")
    DEFAULT_CHATBOT_NAME: str = Field(
        default="Zenithr Assistant", description="Assistant name when brand settings have none"
    )

    # Environment
    HELPDESK_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Search configuration
    SEARCH_MIN_QUERY_LENGTH: int = Field(default=2, description="Minimum trimmed query length")
    SEARCH_DEBOUNCE_MS: int = Field(default=300, description="Quiet period before a search fires")
    SEARCH_DOCUMENT_LIMIT: int = Field(default=20, description="Max document rows per search")
    SEARCH_RESOURCE_LIMIT: int = Field(default=10, description="Max resource rows per search")
    SEARCH_CHANGELOG_LIMIT: int = Field(default=20, description="Max change-log rows per search")
    SEARCH_VIDEO_LIMIT: int = Field(default=10, description="Max video rows per search")

    # Reference listing configuration
    REFERENCE_PREVIEW_CHARS: int = Field(
        default=150, description="Document body preview length in the reference listing"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
