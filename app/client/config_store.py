"""
Persisted repository configuration for the public-repo (direct) gallery mode.
Stored as JSON under a fixed key; created on first use by the setup prompt.
"""
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

CONFIG_KEY = "imageHostConfig"
IMAGES_DIR = "images"


class RepoConfig(BaseModel):
    """Repository coordinates: {owner, repo, branch}."""
    owner: str
    repo: str
    branch: str = "main"

    def repo_link(self) -> str:
        """Browsable link to the images directory on github.com."""
        return f"https://github.com/{self.owner}/{self.repo}/tree/{self.branch}/{IMAGES_DIR}"

    def pages_url(self, filename: str = "") -> str:
        """GitHub Pages address of the images directory or one image."""
        path = f"{IMAGES_DIR}/{filename}" if filename else IMAGES_DIR
        return f"https://{self.owner}.github.io/{self.repo}/{path}"

    def contents_api_url(self) -> str:
        """Unauthenticated contents API listing of the images directory."""
        return f"https://api.github.com/repos/{self.owner}/{self.repo}/contents/{IMAGES_DIR}?ref={self.branch}"

    def raw_url(self, path: str) -> str:
        return f"https://raw.githubusercontent.com/{self.owner}/{self.repo}/{self.branch}/{path}"


class ConfigStore:
    """
    JSON file holding {"imageHostConfig": {owner, repo, branch}}.

    Args:
        path: Location of the JSON file
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[RepoConfig]:
        """Stored config, or None if absent or unreadable."""
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            saved = data.get(CONFIG_KEY) if isinstance(data, dict) else None
            if not saved:
                return None
            return RepoConfig.model_validate(saved)
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable config at {self.path}: {str(e)}")
            return None

    def save(self, owner: str, repo: str, branch: str) -> RepoConfig:
        """Persist and return a new config; blank values are rejected."""
        owner, repo, branch = owner.strip(), repo.strip(), branch.strip()
        if not (owner and repo and branch):
            raise ValueError("owner, repo and branch are all required")

        config = RepoConfig(owner=owner, repo=repo, branch=branch)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({CONFIG_KEY: config.model_dump()}, indent=4),
            encoding="utf-8"
        )
        logger.info(f"Saved repository config to {self.path}")
        return config

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
