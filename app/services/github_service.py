"""
GitHub contents API service for storing, listing and deleting images.
Wraps httpx.AsyncClient and translates GitHub responses into typed results
and ImageHostError exceptions.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.config import GitHubConfig, settings
from app.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


class LookupStatus(str, Enum):
    """Outcome of a read against the contents API."""
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass
class ContentLookup:
    """
    Typed result of a content read.
    Any failure other than "not found" is raised as UpstreamError instead.
    """
    status: LookupStatus
    data: Any = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @property
    def sha(self) -> Optional[str]:
        if self.found and isinstance(self.data, dict):
            return self.data.get("sha")
        return None

    @property
    def entries(self) -> List[Dict[str, Any]]:
        """Directory entries (a single file lookup is wrapped in a list)."""
        if not self.found or self.data is None:
            return []
        return self.data if isinstance(self.data, list) else [self.data]

    @classmethod
    def not_found(cls) -> "ContentLookup":
        return cls(status=LookupStatus.NOT_FOUND)


def parse_github_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub's ISO 8601 timestamps ("2024-01-01T12:00:00Z")."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable GitHub timestamp: {value}")
        return None


class GitHubService:
    """
    Thin async client for the repository's contents and commits endpoints.

    Args:
        config: Validated GitHub configuration
        transport: Optional httpx transport (used by tests to fake GitHub)
    """

    def __init__(self, config: GitHubConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=f"{config.api_url}/repos/{config.owner}/{config.repo}",
            headers={
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def raw_url(self, path: str) -> str:
        return self.config.raw_url(path)

    @staticmethod
    def _contents_url(path: str) -> str:
        return f"/contents/{quote(path, safe='/')}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, turning transport failures (timeouts included) into UpstreamError."""
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"GitHub request timed out: {method} {url}: {str(e)}")
            raise UpstreamError(f"GitHub request timed out after {self.config.timeout}s")
        except httpx.HTTPError as e:
            logger.error(f"GitHub request failed: {method} {url}: {str(e)}")
            raise UpstreamError(str(e) or "GitHub request failed")

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Raise UpstreamError carrying GitHub's own message for non-2xx responses."""
        if response.is_success:
            return

        message = None
        try:
            body = response.json()
            if isinstance(body, dict):
                message = body.get("message")
        except ValueError:
            pass

        raise UpstreamError(
            message or f"GitHub API error ({response.status_code})",
            upstream_status=response.status_code,
        )

    async def get_content(self, path: str) -> ContentLookup:
        """
        Fetch a file or directory by repository path.

        Args:
            path: Repository path (e.g. "images/cat.png")

        Returns:
            ContentLookup: FOUND with the decoded JSON body, or NOT_FOUND

        Raises:
            UpstreamError: For any failure other than 404
        """
        response = await self._request(
            "GET",
            self._contents_url(path),
            params={"ref": self.config.branch},
        )

        if response.status_code == 404:
            logger.debug(f"GitHub content not found: {path}")
            return ContentLookup.not_found()

        self._raise_for_status(response)
        return ContentLookup(status=LookupStatus.FOUND, data=response.json())

    async def put_content(
        self,
        path: str,
        content: str,
        message: str,
        sha: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create or update a file.

        Args:
            path: Repository path
            content: Base64-encoded file bytes
            message: Commit message
            sha: Current version marker, required when overwriting

        Returns:
            dict: GitHub response (content and commit metadata)
        """
        payload = {
            "message": message,
            "content": content,
            "branch": self.config.branch,
        }
        if sha:
            payload["sha"] = sha

        response = await self._request("PUT", self._contents_url(path), json=payload)
        self._raise_for_status(response)

        logger.info(f"Committed {path} to {self.config.owner}/{self.config.repo}@{self.config.branch}")
        return response.json()

    async def delete_content(self, path: str, sha: str, message: str) -> Dict[str, Any]:
        """
        Delete a file identified by its current version marker.

        Args:
            path: Repository path
            sha: Current version marker of the file
            message: Commit message

        Returns:
            dict: GitHub response (commit metadata)
        """
        payload = {
            "message": message,
            "sha": sha,
            "branch": self.config.branch,
        }

        response = await self._request("DELETE", self._contents_url(path), json=payload)
        self._raise_for_status(response)

        logger.info(f"Deleted {path} from {self.config.owner}/{self.config.repo}@{self.config.branch}")
        return response.json()

    async def latest_commit_date(self, path: str) -> Optional[datetime]:
        """
        Timestamp of the most recent commit touching a path.

        Returns:
            datetime or None if the history has no usable date
        """
        response = await self._request(
            "GET",
            "/commits",
            params={"path": path, "sha": self.config.branch, "per_page": 1},
        )
        self._raise_for_status(response)

        commits = response.json()
        if not commits:
            return None

        commit = commits[0].get("commit") or {}
        author = commit.get("author") or {}
        committer = commit.get("committer") or {}
        return parse_github_datetime(author.get("date") or committer.get("date"))


def validate_github_config() -> bool:
    """
    Validate that GitHub is properly configured.

    Returns:
        bool: True if every required variable is set, False otherwise
    """
    missing = settings.missing_github_settings()
    if missing:
        logger.warning(f"GitHub configuration incomplete, missing: {', '.join(missing)}")
        return False

    logger.info("GitHub configuration validated successfully")
    return True


def get_github_config() -> GitHubConfig:
    """
    The validated GitHub configuration, read from settings on every call.

    Raises:
        ConfigurationError: If credentials or repository coordinates are missing
    """
    try:
        return settings.github_config()
    except ConfigurationError as e:
        logger.error(f"GitHub configuration missing: {', '.join(e.missing)}")
        raise


class GitHubConnector:
    """
    Opens request-scoped GitHub clients on demand.

    Routes validate their input first and only then call the connector, so a
    bad request is rejected before the configuration is even looked at.

    Args:
        transport: Optional httpx transport (used by tests to fake GitHub)
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    def __call__(self) -> GitHubService:
        """
        Returns:
            GitHubService: Client to use as an async context manager

        Raises:
            ConfigurationError: If credentials or repository coordinates are missing
        """
        return GitHubService(get_github_config(), transport=self.transport)


def get_github_connector() -> GitHubConnector:
    """FastAPI dependency providing the GitHub client connector."""
    return GitHubConnector()
