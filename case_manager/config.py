"""
Configuration for the Test Case Manager.

Settings are read from environment variables prefixed with
``CASE_MANAGER_`` and from an optional ``.env`` file:

- CASE_MANAGER_DATABASE_URL: SQLAlchemy URL (default: sqlite:///./case_manager.db)
- CASE_MANAGER_SQL_ECHO: log every SQL statement (default: false)
- CASE_MANAGER_LOG_LEVEL: root log level (default: INFO)
- CASE_MANAGER_ROOT_FOLDER_NAME: name of auto-created root folders (default: Root)
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="CASE_MANAGER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./case_manager.db"
    sql_echo: bool = False

    # Logging
    log_level: str = "INFO"

    # Folder used when restored cases have lost their folder
    root_folder_name: str = "Root"
    root_folder_detail: str = "Auto-created root folder"

    # Service info
    service_name: str = "Test Case Manager"
    service_version: str = "1.0.0"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
