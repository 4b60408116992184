import asyncio

import httpx
import pytest

from app.errors import UpstreamError, ValidationError
from app.schemas import UploadRequest
from app.services.github_service import GitHubService
from app.services.image_service import MAX_NAME_ATTEMPTS, upload_image, validate_delete_filename
from conftest import b64, make_png

MAX_SIZE = 15 * 1024 * 1024


def upload_repeatedly(github_config, fake_github, times):
    request = UploadRequest(filename="x.png", content=b64(make_png()), size=10)

    async def scenario():
        results = []
        async with GitHubService(github_config, transport=httpx.MockTransport(fake_github.handler)) as github:
            for _ in range(times):
                results.append(await upload_image(github, request, MAX_SIZE, clock=lambda: 1000))
        return results

    return asyncio.run(scenario())


def test_colliding_name_bumps_timestamp(github_config, fake_github):
    first, second = upload_repeatedly(github_config, fake_github, 2)

    assert first.filename == "x_1000.png"
    assert second.filename == "x_1001.png"
    assert second.url.endswith("/images/x_1001.png")
    assert set(fake_github.files) == {"images/x_1000.png", "images/x_1001.png"}


def test_gives_up_after_max_attempts(github_config, fake_github):
    upload_repeatedly(github_config, fake_github, MAX_NAME_ATTEMPTS)
    stored = dict(fake_github.files)

    with pytest.raises(UpstreamError, match="Could not allocate a unique filename for x.png"):
        upload_repeatedly(github_config, fake_github, 1)

    assert fake_github.files == stored
    assert not any(method == "PUT" for method, _ in fake_github.calls[-MAX_NAME_ATTEMPTS:])


@pytest.mark.parametrize("filename,error", [
    (None, "Missing filename"),
    ("", "Missing filename"),
    ("a/b.png", "Invalid filename"),
    ("..", "Invalid filename"),
])
def test_validate_delete_filename_rejects(filename, error):
    with pytest.raises(ValidationError, match=error):
        validate_delete_filename(filename)


def test_validate_delete_filename_accepts_plain_name():
    assert validate_delete_filename("cat_1700000000000.png") == "cat_1700000000000.png"
