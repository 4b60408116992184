import json

import pytest

from app.client.config_store import CONFIG_KEY, ConfigStore, RepoConfig


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "nested" / "config.json")


def test_load_without_file_returns_none(store):
    assert store.load() is None


def test_save_then_load(store):
    saved = store.save(" octo ", "pics", "main")

    assert saved == RepoConfig(owner="octo", repo="pics", branch="main")
    assert store.load() == saved
    assert json.loads(store.path.read_text())[CONFIG_KEY] == {"owner": "octo", "repo": "pics", "branch": "main"}


def test_save_requires_all_fields(store):
    with pytest.raises(ValueError):
        store.save("octo", "", "main")
    assert store.load() is None


def test_clear(store):
    store.save("octo", "pics", "main")
    store.clear()

    assert store.load() is None
    store.clear()


def test_corrupt_file_is_ignored(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json")

    assert store.load() is None


def test_url_helpers():
    config = RepoConfig(owner="octo", repo="pics", branch="dev")

    assert config.repo_link() == "https://github.com/octo/pics/tree/dev/images"
    assert config.pages_url() == "https://octo.github.io/pics/images"
    assert config.pages_url("cat.png") == "https://octo.github.io/pics/images/cat.png"
    assert config.contents_api_url() == "https://api.github.com/repos/octo/pics/contents/images?ref=dev"
    assert config.raw_url("images/cat.png") == "https://raw.githubusercontent.com/octo/pics/dev/images/cat.png"
