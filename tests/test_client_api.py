import asyncio
import base64
import json

import httpx
import pytest

from app.client.api import DirectRepoApi, GalleryApiError, ImageHostApi, validate_file
from app.client.config_store import RepoConfig
from app.errors import ValidationError
from conftest import make_png


def run(coro):
    return asyncio.run(coro)


def test_validate_file_accepts_images(tmp_path):
    path = tmp_path / "cat.png"
    path.write_bytes(b"12345")

    assert validate_file(path) == 5


def test_validate_file_rejects_other_types(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hi")

    with pytest.raises(ValidationError):
        validate_file(path)


def test_validate_file_rejects_oversized(tmp_path):
    path = tmp_path / "big.jpg"
    path.write_bytes(b"x" * 11)

    with pytest.raises(ValidationError):
        validate_file(path, max_size=10)


class TestImageHostApi:
    def test_list_images(self):
        def handler(request):
            assert request.url.path == "/api/images"
            return httpx.Response(200, json={"images": [
                {"name": "a.png", "url": "https://raw/a.png", "size": 3, "date": "2024-01-01T00:00:00Z", "sha": "s"},
            ]})

        async def scenario():
            api = ImageHostApi("http://host/api", transport=httpx.MockTransport(handler))
            try:
                return await api.list_images()
            finally:
                await api.aclose()

        (image,) = run(scenario())
        assert image.name == "a.png"
        assert image.date.year == 2024

    def test_upload_sends_base64_payload(self, tmp_path):
        path = tmp_path / "cat.png"
        data = make_png()
        path.write_bytes(data)
        sent = {}

        def handler(request):
            sent.update(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "url": "https://raw/cat_1.png", "filename": "cat_1.png"})

        async def scenario():
            api = ImageHostApi("http://host/api", transport=httpx.MockTransport(handler))
            try:
                return await api.upload_file(path)
            finally:
                await api.aclose()

        result = run(scenario())
        assert result.filename == "cat_1.png"
        assert sent["filename"] == "cat.png"
        assert sent["size"] == len(data)
        assert base64.b64decode(sent["content"]) == data

    def test_error_message_from_server(self):
        def handler(request):
            return httpx.Response(404, json={"error": "File not found"})

        async def scenario():
            api = ImageHostApi("http://host/api", transport=httpx.MockTransport(handler))
            try:
                await api.delete_image("nope.png")
            finally:
                await api.aclose()

        with pytest.raises(GalleryApiError, match="File not found"):
            run(scenario())

    def test_non_json_success_body_is_api_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        async def scenario():
            api = ImageHostApi("http://host/api", transport=httpx.MockTransport(handler))
            try:
                await api.list_images()
            finally:
                await api.aclose()

        with pytest.raises(GalleryApiError, match="Failed to load images"):
            run(scenario())

    def test_probe_dimensions(self):
        png = make_png(7, 5)

        def handler(request):
            return httpx.Response(200, content=png)

        async def scenario():
            api = ImageHostApi("http://host/api", transport=httpx.MockTransport(handler))
            try:
                return await api.probe_dimensions("https://raw.githubusercontent.com/o/r/main/images/x.png")
            finally:
                await api.aclose()

        assert run(scenario()) == (7, 5)


class TestDirectRepoApi:
    config = RepoConfig(owner="octo", repo="pics", branch="main")

    def test_lists_public_repository(self):
        def handler(request):
            assert str(request.url) == "https://api.github.com/repos/octo/pics/contents/images?ref=main"
            return httpx.Response(200, json=[
                {"type": "file", "name": "a.png", "path": "images/a.png", "size": 1, "sha": "1"},
                {"type": "file", "name": "b.txt", "path": "images/b.txt", "size": 1, "sha": "2"},
                {"type": "dir", "name": "sub.png", "path": "images/sub.png", "size": 0, "sha": "3"},
            ])

        async def scenario():
            api = DirectRepoApi(self.config, transport=httpx.MockTransport(handler))
            try:
                return await api.list_images()
            finally:
                await api.aclose()

        (image,) = run(scenario())
        assert image.url == "https://raw.githubusercontent.com/octo/pics/main/images/a.png"
        assert image.date is None

    def test_missing_directory_is_empty(self):
        async def scenario():
            api = DirectRepoApi(self.config, transport=httpx.MockTransport(lambda r: httpx.Response(404, json={})))
            try:
                return await api.list_images()
            finally:
                await api.aclose()

        assert run(scenario()) == []

    def test_is_read_only(self, tmp_path):
        async def scenario():
            api = DirectRepoApi(self.config, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
            try:
                await api.delete_image("a.png")
            finally:
                await api.aclose()

        with pytest.raises(GalleryApiError):
            run(scenario())
