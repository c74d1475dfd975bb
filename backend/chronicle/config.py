# backend/chronicle/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Storage Paths
    STORAGE_PATH: Path = Path("storage")
    GENERATIONS_PATH: Path | None = None  # Will be set based on STORAGE_PATH
    LOG_DIR: Path | None = None  # Will be set based on STORAGE_PATH

    # Store behaviour
    BUSY_RETRY_AFTER: int = 5  # Seconds a client should wait while a restore runs
    MAX_ARCHIVE_BYTES: int = 2 * 1024 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def model_post_init(self, __context) -> None:
        """Post initialization hook to set derived paths"""
        # Convert STORAGE_PATH to Path if it's a string
        if isinstance(self.STORAGE_PATH, str):
            self.STORAGE_PATH = Path(self.STORAGE_PATH)

        # Set derived paths if not explicitly provided
        self.GENERATIONS_PATH = Path(self.GENERATIONS_PATH) if self.GENERATIONS_PATH else self.STORAGE_PATH / "generations"
        self.LOG_DIR = Path(self.LOG_DIR) if self.LOG_DIR else self.STORAGE_PATH / "logs"

    def create_storage_dirs(self) -> None:
        """Create necessary storage directories if they don't exist"""
        for path in [self.STORAGE_PATH, self.GENERATIONS_PATH]:
            path.mkdir(parents=True, exist_ok=True)

settings = Settings()
