"""Configuration management for the askbox question service."""
import logging
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = Field(default="askbox", env="APP_NAME")
    debug: bool = Field(default=False, env="DEBUG")

    # Storage Configuration
    data_dir: Path = Field(default=Path("."), env="DATA_DIR")
    questions_file: str = Field(default="questions.txt", env="QUESTIONS_FILE")
    users_file: str = Field(default="users.txt", env="USERS_FILE")

    # Logging Configuration
    log_level: str = Field(default="WARNING", env="LOG_LEVEL")

    @computed_field
    @property
    def questions_path(self) -> Path:
        """Location of the question store file."""
        return self.data_dir / self.questions_file

    @computed_field
    @property
    def users_path(self) -> Path:
        """Location of the user directory file."""
        return self.data_dir / self.users_file

    @property
    def logging_level(self) -> int:
        """Numeric logging level; unknown names fall back to WARNING."""
        if self.debug:
            return logging.DEBUG
        level = getattr(logging, self.log_level.strip().upper(), None)
        return level if isinstance(level, int) else logging.WARNING

    model_config = SettingsConfigDict(
        env_file=None,  # Don't load from .env file
        case_sensitive=False,
        extra="ignore"
    )


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
