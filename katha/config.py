"""
Type-safe configuration using Pydantic Settings
Validates environment variables and provides sensible defaults
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class EditorConfig(BaseSettings):
    """
    Session editor configuration with validation
    Automatically loads from environment variables and .env file
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Required settings
    telegram_bot_token: str = Field(
        ..., description="Telegram Bot API token from @BotFather"
    )
    api_token: str = Field(
        ..., description="Coach API token sent as a Bearer token to the backend"
    )

    # Backend settings
    api_base_url: str = Field(
        "http://localhost:5000/api", description="Base URL of the marketplace REST API"
    )
    request_timeout: int = Field(
        10,
        ge=1,
        le=120,
        description="Timeout in seconds for every backend request (default: 10)",
    )

    # Optional Telegram settings
    coach_telegram_id: Optional[int] = Field(
        None, description="If set, only this Telegram user may use the editor"
    )

    # Database settings
    db_file: str = Field("editor_state.db", description="SQLite database file path")

    editor_session_timeout: int = Field(
        1800,
        ge=60,
        description="Seconds before an idle editor conversation is discarded",
    )

    @field_validator("telegram_bot_token")
    @classmethod
    def validate_telegram_token(cls, v: str) -> str:
        """Validate Telegram bot token format"""
        if not v or v == "your_bot_token_here":
            raise ValueError(
                "TELEGRAM_BOT_TOKEN must be set to a valid token from @BotFather"
            )
        if ":" not in v:
            raise ValueError(
                "TELEGRAM_BOT_TOKEN appears to be invalid (should contain ':')"
            )
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are joined with '/', so drop any trailing slash"""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    def is_coach(self, user_id: int) -> bool:
        """Check whether a Telegram user may edit this coach's sessions"""
        return self.coach_telegram_id is None or self.coach_telegram_id == user_id


# Singleton instance
_config: Optional[EditorConfig] = None


def get_config() -> EditorConfig:
    """
    Get or create the global configuration instance

    Returns:
        EditorConfig: Validated configuration

    Raises:
        ValidationError: If configuration is invalid
    """
    global _config
    if _config is None:
        _config = EditorConfig()
    return _config
