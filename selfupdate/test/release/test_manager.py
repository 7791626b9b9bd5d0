from __future__ import annotations

import pytest

from selfupdate.core.result import Err, Ok
from selfupdate.http.client import MockHttpClient
from selfupdate.release.github import releases_url
from selfupdate.release.manager import SelfUpdateManager
from selfupdate.release.model import ResolutionOptions

REPO = "acme/widget"


def _listing(*tags: str) -> list[dict[str, object]]:
    return [
        {
            "tag_name": tag,
            "prerelease": False,
            "assets": [{"browser_download_url": f"https://example.com/{tag}/widget.pyz"}],
        }
        for tag in tags
    ]


@pytest.fixture
def http() -> MockHttpClient:
    client = MockHttpClient()
    client.set_json(releases_url(REPO), _listing("3.0.0", "2.1.0", "2.0.0", "1.9.0"))
    return client


def test_compatible_update_within_major(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "2.0.0", REPO, http)
    options = ResolutionOptions(compatible=True)

    resolved = manager.resolve_latest(options)
    assert isinstance(resolved, Ok)
    assert resolved.value is not None
    assert resolved.value.version == "2.1.0"
    assert resolved.value.download_url == "https://example.com/2.1.0/widget.pyz"

    assert manager.is_up_to_date(options) == Ok(False)


def test_latest_release_by_default(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "2.0.0", REPO, http)
    resolved = manager.available_update()
    assert isinstance(resolved, Ok)
    assert resolved.value is not None
    assert resolved.value.display_tag == "3.0.0"


def test_up_to_date_when_running_latest(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "v3.0.0", REPO, http)
    assert manager.is_up_to_date() == Ok(True)
    assert manager.available_update() == Ok(None)


def test_every_call_fetches_fresh(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "1.0.0", REPO, http)
    manager.resolve_latest()
    manager.resolve_latest(ResolutionOptions(preview=True))
    assert len(http.calls) == 2


def test_user_agent_and_current_version() -> None:
    manager = SelfUpdateManager("widget", "v1.4.0-beta1", REPO, MockHttpClient())
    assert manager.user_agent == "widget (acme/widget) Self-Update (Python)"
    assert manager.current_version == "1.4.0-beta.1"
    assert manager.raw_current_version == "v1.4.0-beta1"


def test_invalid_current_version(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "dev-main", REPO, http)
    assert manager.current_version == "dev-main"

    result = manager.is_up_to_date()
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_current_version"
    assert http.calls == []


def test_no_releases_published() -> None:
    client = MockHttpClient()
    client.set_json(releases_url(REPO), [])
    manager = SelfUpdateManager("widget", "1.0.0", REPO, client)

    result = manager.is_up_to_date()
    assert isinstance(result, Err)
    assert result.error.kind == "no_releases_found"
    assert REPO in result.error.message


def test_only_unversioned_tags_means_up_to_date() -> None:
    client = MockHttpClient()
    client.set_json(releases_url(REPO), _listing("latest", "nightly"))
    manager = SelfUpdateManager("widget", "1.0.0", REPO, client)

    assert manager.resolve_latest() == Ok(None)
    assert manager.is_up_to_date() == Ok(True)


def test_releases_catalog(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "1.0.0", REPO, http)
    catalog = manager.releases()
    assert isinstance(catalog, Ok)
    assert catalog.value.versions == ["3.0.0", "2.1.0", "2.0.0", "1.9.0"]


def test_invalid_constraint_surfaces(http: MockHttpClient) -> None:
    manager = SelfUpdateManager("widget", "1.0.0", REPO, http)
    result = manager.resolve_latest(ResolutionOptions(version_constraint="~~2"))
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_constraint"
