"""
Gallery client settings.
Uses Pydantic Settings so the client reads the same .env file as the server.
"""
from pathlib import Path

from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Client settings loaded from environment variables."""

    # Base URL of the image host API (the server's /api prefix included)
    IMAGEHOST_API_URL: str = "http://localhost:8000/api"
    IMAGEHOST_TIMEOUT_SECONDS: float = 30.0

    # Where the public-repo config is persisted
    IMAGEHOST_CONFIG_PATH: Path = Path.home() / ".imagehost" / "config.json"

    # Same limit the server enforces, checked before sending
    IMAGEHOST_MAX_FILE_SIZE: int = 15 * 1024 * 1024  # 15MB

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


client_settings = ClientSettings()
