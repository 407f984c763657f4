"""Application configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    environment: str = Field(default="development", description="Environment")
    frontend_url: str = Field(default="http://localhost:5173", description="Frontend URL")
    log_level: str = Field(default="INFO", description="Root log level")

    # Lobby Configuration
    session_code_length: int = Field(default=6, ge=4, le=32, description="Session code length")
    card_game_capacity: int = Field(default=4, ge=2, description="Seats in a card game session")
    default_capacity: int = Field(default=2, ge=1, description="Seats for any other game type")

    # Activity log
    activity_log_enabled: bool = Field(default=True, description="Record lobby operations")


# Global settings instance
settings = Settings()
