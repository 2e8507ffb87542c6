# wg_manager/config.py
"""
Application Configuration
Uses pydantic-settings for environment variable management
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    Create a .env file for local development
    """

    # === Application ===
    APP_NAME: str = "WireGuard Manager"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"  # development, staging, production
    DEV_MODE: bool = False    # Skip host OS checks when debugging off-Linux
    LOG_LEVEL: str = "INFO"

    # === Storage ===
    DATA_DIR: Path = Path("./data")
    CONFIG_FILENAME: str = "wireguard.json"

    # === Server defaults ===
    DEFAULT_MTU: int = 1420
    DEFAULT_DNS: str = "1.1.1.1,8.8.8.8"

    # === WireGuard tools ===
    WG_BINARY: str = "wg"
    WG_QUICK_BINARY: str = "wg-quick"
    WG_COMMAND_TIMEOUT: int = 10  # seconds

    # === Client configs ===
    CLIENT_PERSISTENT_KEEPALIVE: int = 25  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def config_path(self) -> Path:
        """Full path of the persisted WireGuard document"""
        return self.DATA_DIR / self.CONFIG_FILENAME


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance
    Use this to get settings throughout the application
    """
    return Settings()


settings = get_settings()
