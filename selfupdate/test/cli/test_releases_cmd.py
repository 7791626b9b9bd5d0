from __future__ import annotations

from pathlib import Path

import pytest
import typer

from selfupdate.cli.context import CLIContext
from selfupdate.core.config import CacheConfig, Config
from selfupdate.core.errors import ErrorCode
from selfupdate.http.client import MockHttpClient
from selfupdate.install.replace import SelfReplacer
from selfupdate.output.console import MockConsole, Style
from selfupdate.release.github import releases_url
from selfupdate.release.manager import SelfUpdateManager

REPO = "acme/widget"


def _ctx(tmp_path: Path, http: MockHttpClient) -> CLIContext:
    return CLIContext(
        config=Config(cache=CacheConfig(enabled=False, dir=tmp_path)),
        console=MockConsole(),
        manager=SelfUpdateManager("widget", "1.0.0", REPO, http),
        replacer=SelfReplacer(http),
        program=tmp_path / "widget.pyz",
    )


def test_releases_lists_catalog(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import selfupdate.cli.commands.releases as releases_cmd

    http = MockHttpClient()
    http.set_json(
        releases_url(REPO),
        [
            {"tag_name": "nightly", "assets": []},
            {"tag_name": "v1.0.0", "assets": [{"browser_download_url": "https://x/1.pyz"}]},
            {
                "tag_name": "v2.0.0-beta1",
                "prerelease": True,
                "assets": [
                    {"browser_download_url": "https://x/2.pyz"},
                    {"browser_download_url": "https://x/2.tar.gz"},
                ],
            },
        ],
    )
    ctx = _ctx(tmp_path, http)
    monkeypatch.setattr(releases_cmd, "build_context", lambda: ctx)

    releases_cmd.releases()

    console = ctx.console
    assert isinstance(console, MockConsole)
    assert console.find("acme/widget")[0].style == Style.HEADER
    rows = [o.message for o in console.outputs if o.style == Style.DEFAULT]
    assert rows == [
        "2.0.0-beta.1  v2.0.0-beta1  beta (prerelease)  2",
        "1.0.0  v1.0.0  stable  1",
    ]


def test_releases_without_versioned_tags(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import selfupdate.cli.commands.releases as releases_cmd

    http = MockHttpClient()
    http.set_json(releases_url(REPO), [{"tag_name": "latest"}])
    ctx = _ctx(tmp_path, http)
    monkeypatch.setattr(releases_cmd, "build_context", lambda: ctx)

    releases_cmd.releases()

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("no versioned releases in acme/widget")


def test_releases_remote_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import selfupdate.cli.commands.releases as releases_cmd

    http = MockHttpClient()
    http.set_error(releases_url(REPO), 503, "Service Unavailable")
    ctx = _ctx(tmp_path, http)
    monkeypatch.setattr(releases_cmd, "build_context", lambda: ctx)

    with pytest.raises(typer.Exit) as exc:
        releases_cmd.releases()

    assert exc.value.exit_code == int(ErrorCode.NETWORK_ERROR)
