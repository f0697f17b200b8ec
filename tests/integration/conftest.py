"""Integration test fixtures: real storage in temp dirs, GitHub behind httpx.MockTransport."""

import httpx
import pytest

from github_autocomplete.rate_limit import reset_trackers
from github_autocomplete.settings import get_settings


class FakeGitHub:
    """Canned search endpoints that record every request."""

    def __init__(self):
        self.repos: list[dict] = []
        self.users: list[dict] = []
        self.status = 200
        self.message = ""
        self.headers: dict = {}
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status != 200:
            return httpx.Response(self.status, json={"message": self.message}, headers=self.headers)
        items = self.repos if request.url.path == "/search/repositories" else self.users
        body = {"total_count": len(items), "incomplete_results": False, "items": items}
        return httpx.Response(200, json=body, headers=self.headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _repo(repo_id, name, owner="facebook", owner_id=69631):
    return {
        "id": repo_id,
        "name": name,
        "html_url": f"https://github.com/{owner}/{name}",
        "description": f"{name} description",
        "owner": {
            "id": owner_id,
            "login": owner,
            "html_url": f"https://github.com/{owner}",
            "avatar_url": f"https://avatars.githubusercontent.com/u/{owner_id}",
        },
    }


@pytest.fixture(autouse=True)
def _isolated(monkeypatch):
    """No ambient token, fresh settings and trackers for every test."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    get_settings.cache_clear()
    reset_trackers()
    yield
    reset_trackers()
    get_settings.cache_clear()


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def github():
    fake = FakeGitHub()
    fake.repos = [_repo(i, f"react{i}") for i in range(10)]
    return fake
