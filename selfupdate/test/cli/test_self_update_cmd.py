from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest
import typer

from selfupdate.cli.context import CLIContext
from selfupdate.core.config import CacheConfig, Config
from selfupdate.core.errors import ErrorCode
from selfupdate.http.client import MockHttpClient
from selfupdate.install.replace import SelfReplacer
from selfupdate.output.console import MockConsole
from selfupdate.release.github import releases_url
from selfupdate.release.manager import SelfUpdateManager

REPO = "acme/widget"


def _zipapp(version: str) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("__main__.py", f"print({version!r})\n")
    return buffer.getvalue()


def _asset_url(tag: str) -> str:
    return f"https://github.com/{REPO}/releases/download/{tag}/widget.pyz"


def _ctx(
    tmp_path: Path,
    *,
    current: str = "2.0.0",
    tags: tuple[str, ...] = ("3.0.0", "2.1.0", "2.0.0"),
) -> tuple[CLIContext, MockHttpClient]:
    http = MockHttpClient()
    http.set_json(
        releases_url(REPO),
        [
            {"tag_name": tag, "assets": [{"browser_download_url": _asset_url(tag)}]}
            for tag in tags
        ],
    )
    for tag in tags:
        http.set_download(_asset_url(tag), _zipapp(tag))

    program = tmp_path / "widget.pyz"
    program.write_bytes(_zipapp(current))

    ctx = CLIContext(
        config=Config(cache=CacheConfig(enabled=False, dir=tmp_path / "cache")),
        console=MockConsole(),
        manager=SelfUpdateManager("widget", current, REPO, http),
        replacer=SelfReplacer(http),
        program=program,
    )
    return ctx, http


def _run(ctx: CLIContext, monkeypatch: pytest.MonkeyPatch, **flags: object) -> None:
    import selfupdate.cli.commands.self_update as cmd

    monkeypatch.setattr(cmd, "build_context", lambda: ctx)
    options: dict[str, object] = {
        "stable": False,
        "preview": False,
        "compatible": False,
        "constraint": None,
        "dry_run": False,
    }
    options.update(flags)
    cmd.self_update(**options)  # type: ignore[arg-type]


def test_updates_to_latest(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx, http = _ctx(tmp_path)

    _run(ctx, monkeypatch)

    console = ctx.console
    assert isinstance(console, MockConsole)
    assert console.messages == [
        "Downloading widget (acme/widget) 3.0.0",
        "Download finished",
        f"Successfully updated {ctx.program}",
    ]
    assert ctx.program.read_bytes() == _zipapp("3.0.0")
    assert ("download", _asset_url("3.0.0")) in http.calls
    assert console.progress_events


def test_compatible_stays_on_major(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx, _ = _ctx(tmp_path)

    _run(ctx, monkeypatch, compatible=True)

    assert ctx.program.read_bytes() == _zipapp("2.1.0")


def test_no_update_available(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx, http = _ctx(tmp_path, current="3.0.0")
    before = ctx.program.read_bytes()

    _run(ctx, monkeypatch)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.messages == ["No update available"]
    assert ctx.program.read_bytes() == before
    assert all(kind == "get" for kind, _ in http.calls)


def test_stable_and_preview_are_exclusive(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx, http = _ctx(tmp_path)

    with pytest.raises(typer.Exit) as exc:
        _run(ctx, monkeypatch, stable=True, preview=True)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert http.calls == []


def test_dry_run_does_not_replace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx, http = _ctx(tmp_path)
    before = ctx.program.read_bytes()

    _run(ctx, monkeypatch, dry_run=True)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.messages == [
        "info: would update widget (acme/widget) to 3.0.0",
        "2.0.0 -> 3.0.0",
        f"url: {_asset_url('3.0.0')}",
    ]
    assert not ctx.console.find("Downloading")
    assert ctx.program.read_bytes() == before
    assert all(kind == "get" for kind, _ in http.calls)


def test_not_packaged_fails_before_network(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx, http = _ctx(tmp_path)
    ctx.program.write_text("print('source checkout')\n", encoding="utf-8")

    with pytest.raises(typer.Exit) as exc:
        _run(ctx, monkeypatch)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert http.calls == []
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.has_error()


def test_invalid_constraint_is_user_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx, _ = _ctx(tmp_path)

    with pytest.raises(typer.Exit) as exc:
        _run(ctx, monkeypatch, constraint=">=banana")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_no_releases_is_network_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx, _ = _ctx(tmp_path, tags=())

    with pytest.raises(typer.Exit) as exc:
        _run(ctx, monkeypatch)

    assert exc.value.exit_code == int(ErrorCode.NETWORK_ERROR)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("no release found at GitHub repository acme/widget")


def test_corrupted_download_is_integrity_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx, http = _ctx(tmp_path)
    http.set_download(_asset_url("3.0.0"), b"<html>oops</html>")
    before = ctx.program.read_bytes()

    with pytest.raises(typer.Exit) as exc:
        _run(ctx, monkeypatch)

    assert exc.value.exit_code == int(ErrorCode.INTEGRITY_ERROR)
    assert ctx.program.read_bytes() == before
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("hint: please re-run the self-update command to try again")
