import base64
import hashlib
import io
import json
from typing import Dict, List, Optional, Set, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.config import GitHubConfig, settings
from app.main import app
from app.services.github_service import GitHubConnector, get_github_connector
from app.utils.rate_limit import limiter

OWNER = "octo"
REPO = "pics"
BRANCH = "main"
REPO_PREFIX = f"/repos/{OWNER}/{REPO}"


def make_png(width: int = 4, height: int = 3) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class FakeGitHub:
    """
    In-memory stand-in for the GitHub contents and commits endpoints.
    Files are keyed by repository path.
    """

    def __init__(self):
        self.files: Dict[str, dict] = {}
        self.calls: List[Tuple[str, str]] = []
        self.failing_commit_paths: Set[str] = set()
        self.fail_all: Optional[str] = None
        self._counter = 0

    def add_file(self, path: str, data: bytes = b"img", date: Optional[str] = "2024-01-01T00:00:00Z"):
        self._counter += 1
        self.files[path] = {
            "content": b64(data),
            "size": len(data),
            "sha": hashlib.sha1(f"{path}-{self._counter}".encode()).hexdigest(),
            "date": date,
        }

    def _entry(self, path: str) -> dict:
        stored = self.files[path]
        return {
            "type": "file",
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "sha": stored["sha"],
            "size": stored["size"],
        }

    @staticmethod
    def _json(status: int, body) -> httpx.Response:
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if self.fail_all:
            return self._json(502, {"message": self.fail_all})

        if not path.startswith(REPO_PREFIX):
            return self._json(404, {"message": "Not Found"})
        path = path[len(REPO_PREFIX):]

        if path.startswith("/contents/"):
            repo_path = path[len("/contents/"):]
            if request.method == "GET":
                return self._get(repo_path)
            if request.method == "PUT":
                return self._put(repo_path, json.loads(request.content))
            if request.method == "DELETE":
                return self._delete(repo_path, json.loads(request.content))

        if path == "/commits" and request.method == "GET":
            return self._commits(request.url.params.get("path"))

        return self._json(404, {"message": "Not Found"})

    def _get(self, repo_path: str) -> httpx.Response:
        if repo_path in self.files:
            return self._json(200, self._entry(repo_path))

        prefix = repo_path.rstrip("/") + "/"
        children = [p for p in self.files if p.startswith(prefix) and "/" not in p[len(prefix):]]
        if children:
            return self._json(200, [self._entry(p) for p in sorted(children)])
        return self._json(404, {"message": "Not Found"})

    def _put(self, repo_path: str, body: dict) -> httpx.Response:
        existing = self.files.get(repo_path)
        if existing and body.get("sha") != existing["sha"]:
            return self._json(422, {"message": "\"sha\" wasn't supplied."})

        data = base64.b64decode(body["content"])
        self.add_file(repo_path, data, date=f"2024-06-01T00:00:{self._counter % 60:02d}Z")
        return self._json(201, {"content": self._entry(repo_path), "commit": {"message": body["message"]}})

    def _delete(self, repo_path: str, body: dict) -> httpx.Response:
        existing = self.files.get(repo_path)
        if existing is None:
            return self._json(404, {"message": "Not Found"})
        if body.get("sha") != existing["sha"]:
            return self._json(409, {"message": f"{repo_path} does not match {body.get('sha')}"})

        del self.files[repo_path]
        return self._json(200, {"commit": {"message": body["message"]}})

    def _commits(self, repo_path: Optional[str]) -> httpx.Response:
        if repo_path in self.failing_commit_paths:
            return self._json(500, {"message": "Server Error"})

        stored = self.files.get(repo_path)
        if stored is None or stored["date"] is None:
            return self._json(200, [])
        return self._json(200, [{"commit": {"author": {"date": stored["date"]}}}])


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(token="test-token", owner=OWNER, repo=REPO, branch=BRANCH)


@pytest.fixture
def configured_settings(monkeypatch):
    monkeypatch.setattr(settings, "GITHUB_TOKEN", "test-token")
    monkeypatch.setattr(settings, "GITHUB_OWNER", OWNER)
    monkeypatch.setattr(settings, "GITHUB_REPO", REPO)
    monkeypatch.setattr(settings, "GITHUB_BRANCH", BRANCH)
    monkeypatch.setattr(settings, "IMAGES_DIR", "images")
    monkeypatch.setattr(settings, "GITHUB_API_URL", "https://api.github.com")
    return settings


@pytest.fixture
def client(fake_github, configured_settings):
    transport = httpx.MockTransport(fake_github.handler)
    app.dependency_overrides[get_github_connector] = lambda: GitHubConnector(transport=transport)
    limiter.enabled = False
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True
