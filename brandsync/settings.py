# brandsync/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Determine the project root dynamically from this file's location
# This settings.py file is at brandsync/settings.py
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
DOTENV_PATH = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    app_name: str = "BrandSync"
    debug_mode: bool = False
    log_level: str = "INFO"

    # Persistence collaborator: "sqlite" or "memory"
    storage_backend: str = "sqlite"
    sqlite_db_path: str = "./brandsync_data.sqlite3"

    # Change notification transport: "redis" or "memory"
    notifier_backend: str = "memory"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    redis_channel_prefix: str = "brandsync:tokens"

    # Surface fetch retry policy
    fetch_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Total fetch attempts before a surface reports an error."
    )
    fetch_retry_backoff_seconds: float = Field(
        default=0.25,
        ge=0,
        description="Delay before the first retry; doubled on each further retry."
    )

    # Builder behaviour
    autosave_debounce_seconds: float = Field(
        default=1.5,
        ge=0,
        description="Quiet period after the last edit before an autosave is written."
    )
    access_code_length: int = 6
    public_base_url: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=DOTENV_PATH if DOTENV_PATH.exists() else None,
        env_prefix="BRANDSYNC_",
        extra="ignore",
        env_file_encoding='utf-8'
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level.upper()


settings = Settings()

if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=settings.effective_log_level,
        format='%(asctime)s - %(name)s [%(levelname)s] - %(message)s'
    )

logger.debug(
    f"Settings loaded: storage_backend='{settings.storage_backend}', "
    f"notifier_backend='{settings.notifier_backend}', "
    f"redis_password={'********' if settings.redis_password else 'None'}"
)
