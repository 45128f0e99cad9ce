import pytest
import requests

from license_inspector import github_api
from license_inspector.errors import GitHubAPIError
from license_inspector.types import Credentials


class DummyResponse:
    def __init__(self, status_code=200, payload=None, headers=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.headers = headers or {}

    def json(self):
        return self._payload


RATE_HEADERS = {"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "4999", "X-RateLimit-Reset": "1700000000"}


def test_fetch_repo_license_reads_name_and_rate_limit(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return DummyResponse(payload={"license": {"name": "MIT License"}}, headers=RATE_HEADERS)

    monkeypatch.setattr(github_api.requests, "get", fake_get)

    result = github_api.fetch_repo_license("foo", "bar", Credentials("octo", "token"))
    assert result.name == "MIT License"
    assert result.rate_limit.limit == 5000
    assert result.rate_limit.remaining == 4999
    assert result.rate_limit.reset_at.year == 2023

    url, kwargs = calls[0]
    assert url == "https://api.github.com/repos/foo/bar"
    assert kwargs["auth"] == ("octo", "token")
    assert kwargs["headers"]["X-GitHub-Api-Version"] == "2022-11-28"


def test_repository_without_license(monkeypatch):
    monkeypatch.setattr(github_api.requests, "get", lambda url, **kwargs: DummyResponse(payload={"license": None}))

    result = github_api.fetch_repo_license("foo", "bar")
    assert result.name is None
    assert result.rate_limit is None


def test_bad_status_raises_with_rate_limit(monkeypatch):
    monkeypatch.setattr(
        github_api.requests, "get", lambda url, **kwargs: DummyResponse(status_code=404, headers=RATE_HEADERS)
    )

    with pytest.raises(GitHubAPIError) as excinfo:
        github_api.fetch_repo_license("foo", "missing")
    assert "404" in str(excinfo.value)
    assert excinfo.value.rate_limit.remaining == 4999


def test_network_error_raises(monkeypatch):
    def boom(url, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(github_api.requests, "get", boom)

    with pytest.raises(GitHubAPIError):
        github_api.fetch_repo_license("foo", "bar")
