"""
Field Service Manager - System Configuration
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Counter retry budget and busy timeout for the service
                      report number allocator
v1.0.0 (2026-10-05): Initial configuration module
"""

from pydantic_settings import BaseSettings
from pathlib import Path
import os


class Settings(BaseSettings):
    """System-wide configuration"""

    # Application
    APP_NAME: str = "Field Service Manager"
    APP_VERSION: str = "1.1.0"
    DEBUG: bool = False

    # API Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = 1

    # SQLite Configuration
    SQLITE_DB_PATH: str = str(Path(__file__).parent / "data" / "field_service.db")
    STORE_BUSY_TIMEOUT: float = 5.0  # seconds a writer waits for the lock

    # Service Report Numbers
    COUNTER_NAME: str = "serviceReport"
    COUNTER_MAX_RETRIES: int = 10
    COUNTER_RETRY_BACKOFF: float = 0.02  # seconds, doubled per attempt

    # Listing
    DEFAULT_LIST_LIMIT: int = 100

    # File Paths
    LOGS_DIR: str = str(Path(__file__).parent / "logs")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Singleton instance
settings = Settings()


def init_directories():
    """Create necessary directories if they don't exist"""
    db_dir = os.path.dirname(os.path.abspath(settings.SQLITE_DB_PATH))
    for directory in [db_dir, settings.LOGS_DIR]:
        os.makedirs(directory, exist_ok=True)


if __name__ == "__main__":
    print(f"{settings.APP_NAME} Configuration v{settings.APP_VERSION}")
    print(f"SQLite: {settings.SQLITE_DB_PATH}")
    print(f"Counter: meta/{settings.COUNTER_NAME} "
          f"(retries={settings.COUNTER_MAX_RETRIES})")
