"""Chromium snapshot downloads and the local revision store."""

from __future__ import annotations

import json
import os
from pathlib import Path
import shutil
import zipfile

import pytest

from prettymd.adapters.browser import fetcher as fetcher_module
from prettymd.adapters.browser.fetcher import (
    BrowserFetcher,
    detect_platform,
    load_manifest,
)
from prettymd.core.exceptions import ProvisioningError


def _build_fake_snapshot(target: Path, *, members: tuple[str, ...] = ("chrome-linux/chrome",)) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w") as archive:
        for member in members:
            archive.writestr(member, "#!/bin/sh\necho dummy\n")
    return target


def _stub_download(monkeypatch, archive_path: Path) -> list[str]:
    calls: list[str] = []

    def _download(url, destination, *, transport=None, progress=None, **_kwargs):
        calls.append(url)
        shutil.copy(archive_path, destination)
        if progress is not None:
            size = archive_path.stat().st_size
            progress(size // 2, size)
            progress(size, size)
        return destination

    monkeypatch.setattr(fetcher_module, "download_file", _download)
    return calls


def test_download_extracts_snapshot_and_marks_executable(monkeypatch, tmp_path: Path) -> None:
    archive_path = _build_fake_snapshot(tmp_path / "archives" / "chrome-linux.zip")
    calls = _stub_download(monkeypatch, archive_path)
    fetcher = BrowserFetcher(platform="linux", root=tmp_path / "browsers")

    info = fetcher.download("1108766")

    assert calls == [
        "https://storage.googleapis.com/chromium-browser-snapshots/Linux_x64/1108766/chrome-linux.zip"
    ]
    assert info.install_path == tmp_path / "browsers" / "linux-1108766"
    assert info.executable_path == info.install_path / "chrome-linux" / "chrome"
    assert os.access(info.executable_path, os.X_OK)
    assert [entry.name for entry in (tmp_path / "browsers").iterdir()] == ["linux-1108766"]


def test_existing_install_is_reused(monkeypatch, tmp_path: Path) -> None:
    fetcher = BrowserFetcher(platform="linux", root=tmp_path)
    executable = fetcher.revision_info("42").executable_path
    executable.parent.mkdir(parents=True)
    executable.write_text("", encoding="utf-8")

    def _fail(*_args, **_kwargs):
        raise AssertionError("download must not be attempted")

    monkeypatch.setattr(fetcher_module, "download_file", _fail)

    assert fetcher.download("42").executable_path == executable


def test_incomplete_install_is_replaced(monkeypatch, tmp_path: Path) -> None:
    archive_path = _build_fake_snapshot(tmp_path / "chrome-linux.zip")
    calls = _stub_download(monkeypatch, archive_path)
    fetcher = BrowserFetcher(platform="linux", root=tmp_path / "browsers")
    fetcher.folder("42").mkdir(parents=True)

    info = fetcher.download("42")

    assert len(calls) == 1
    assert info.executable_path.is_file()


def test_archive_without_executable_is_rejected(monkeypatch, tmp_path: Path) -> None:
    archive_path = _build_fake_snapshot(tmp_path / "bad.zip", members=("README.txt",))
    _stub_download(monkeypatch, archive_path)
    fetcher = BrowserFetcher(platform="linux", root=tmp_path / "browsers")

    with pytest.raises(ProvisioningError, match="executable not found"):
        fetcher.download("7")

    assert fetcher.local_revisions() == []


def test_corrupt_archive_is_rejected(monkeypatch, tmp_path: Path) -> None:
    archive_path = tmp_path / "corrupt.zip"
    archive_path.write_bytes(b"not a zip file")
    _stub_download(monkeypatch, archive_path)
    fetcher = BrowserFetcher(platform="linux", root=tmp_path / "browsers")

    with pytest.raises(ProvisioningError, match="corrupt"):
        fetcher.download("7")


@pytest.mark.parametrize(
    ("platform", "expected"),
    [
        ("linux", "Linux_x64/99/chrome-linux.zip"),
        ("mac", "Mac/99/chrome-mac.zip"),
        ("mac_arm", "Mac_Arm/99/chrome-mac.zip"),
        ("win32", "Win/99/chrome-win.zip"),
        ("win64", "Win_x64/99/chrome-win.zip"),
    ],
)
def test_download_url_per_platform(tmp_path: Path, platform: str, expected: str) -> None:
    fetcher = BrowserFetcher(platform=platform, root=tmp_path, host="https://mirror.example/")

    assert fetcher.download_url("99") == f"https://mirror.example/chromium-browser-snapshots/{expected}"


def test_executable_location_per_platform(tmp_path: Path) -> None:
    mac = BrowserFetcher(platform="mac", root=tmp_path).revision_info("1")
    win = BrowserFetcher(platform="win64", root=tmp_path).revision_info("1")

    assert mac.executable_path.parts[-4:] == ("Chromium.app", "Contents", "MacOS", "Chromium")
    assert win.executable_path.name == "chrome.exe"


def test_unknown_platform_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ProvisioningError):
        BrowserFetcher(platform="solaris", root=tmp_path)


def test_local_revisions_only_lists_this_platform(tmp_path: Path) -> None:
    for name in ("linux-200", "linux-100", "mac-300"):
        (tmp_path / name).mkdir()
    (tmp_path / "linux-file").write_text("", encoding="utf-8")

    assert BrowserFetcher(platform="linux", root=tmp_path).local_revisions() == ["100", "200"]


def test_remove_deletes_revision_folder(tmp_path: Path) -> None:
    fetcher = BrowserFetcher(platform="linux", root=tmp_path)
    fetcher.folder("5").mkdir()

    fetcher.remove("5")

    assert fetcher.local_revisions() == []


def test_remove_missing_revision_raises(tmp_path: Path) -> None:
    with pytest.raises(ProvisioningError, match="r5"):
        BrowserFetcher(platform="linux", root=tmp_path).remove("5")


@pytest.mark.parametrize(
    ("system", "machine", "expected"),
    [
        ("linux", "x86_64", "linux"),
        ("darwin", "x86_64", "mac"),
        ("darwin", "arm64", "mac_arm"),
        ("win32", "AMD64", "win64"),
        ("win32", "x86", "win32"),
    ],
)
def test_detect_platform(system: str, machine: str, expected: str) -> None:
    assert detect_platform(system, machine) == expected


def test_detect_platform_rejects_unknown_systems() -> None:
    with pytest.raises(ProvisioningError):
        detect_platform("sunos5", "sparc")


def test_bundled_manifest_pins_a_revision() -> None:
    manifest = load_manifest()

    assert manifest.revision.isdigit()
    assert manifest.download_host.startswith("https://")


def test_manifest_without_revision_is_rejected(tmp_path: Path) -> None:
    manifest_path = tmp_path / "browser.json"
    manifest_path.write_text(json.dumps({"download_host": "https://x"}), encoding="utf-8")

    with pytest.raises(ProvisioningError, match="no revision"):
        load_manifest(manifest_path)
