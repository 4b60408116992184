"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import Dict

from app.errors import ConfigurationError


class GitHubConfig(BaseModel):
    """
    Validated repository coordinates and credentials.
    Built from Settings once every required value is present.
    """
    token: str
    owner: str
    repo: str
    branch: str = "main"
    images_dir: str = "images"
    api_url: str = "https://api.github.com"
    timeout: float = 30.0

    def image_path(self, filename: str) -> str:
        """Repository path of an image file."""
        return f"{self.images_dir}/{filename}"

    def raw_url(self, path: str) -> str:
        """Stable unauthenticated read address for a stored file."""
        return f"https://raw.githubusercontent.com/{self.owner}/{self.repo}/{self.branch}/{path}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "GitHub Image Host"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Image hosting backed by a GitHub repository"

    # GitHub Configuration
    # GITHUB_TOKEN needs contents read/write permission on the target repository
    GITHUB_TOKEN: str = ""
    GITHUB_OWNER: str = ""
    GITHUB_REPO: str = ""
    GITHUB_BRANCH: str = "main"
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TIMEOUT_SECONDS: float = 30.0

    # Directory inside the repository holding the images
    IMAGES_DIR: str = "images"

    # Upload limits
    MAX_UPLOAD_SIZE: int = 15 * 1024 * 1024  # 15MB

    # Rate limits (slowapi syntax)
    RATE_LIMIT_UPLOAD: str = "20/minute"
    RATE_LIMIT_DELETE: str = "30/minute"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def missing_github_settings(self) -> list:
        """Names of required GitHub variables that are empty."""
        required: Dict[str, str] = {
            "GITHUB_TOKEN": self.GITHUB_TOKEN,
            "GITHUB_OWNER": self.GITHUB_OWNER,
            "GITHUB_REPO": self.GITHUB_REPO,
        }
        return [name for name, value in required.items() if not value.strip()]

    def github_config(self) -> GitHubConfig:
        """
        Build the validated GitHub configuration.

        Returns:
            GitHubConfig: Repository coordinates and credentials

        Raises:
            ConfigurationError: If any required variable is missing
        """
        missing = self.missing_github_settings()
        if missing:
            raise ConfigurationError(
                "Server configuration error",
                missing=missing,
            )

        return GitHubConfig(
            token=self.GITHUB_TOKEN.strip(),
            owner=self.GITHUB_OWNER.strip(),
            repo=self.GITHUB_REPO.strip(),
            branch=self.GITHUB_BRANCH.strip() or "main",
            images_dir=self.IMAGES_DIR.strip("/") or "images",
            api_url=self.GITHUB_API_URL.rstrip("/"),
            timeout=self.GITHUB_TIMEOUT_SECONDS,
        )


# Global settings instance
settings = Settings()
