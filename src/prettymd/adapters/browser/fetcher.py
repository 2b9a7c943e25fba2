"""Download and manage Chromium snapshot revisions in the user directory."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
import platform as _platform
import shutil
import stat
import sys
import tempfile
import zipfile

from prettymd.core.exceptions import ProvisioningError
from prettymd.core.http import ProgressCallback, Transport, download_file
from prettymd.core.templates import ASSETS_DIR
from prettymd.core.user_dir import user_data_dir


logger = logging.getLogger(__name__)

MANIFEST_PATH = ASSETS_DIR / "browser.json"
DEFAULT_DOWNLOAD_HOST = "https://storage.googleapis.com"

PLATFORMS = ("linux", "mac", "mac_arm", "win32", "win64")

_SNAPSHOT_FOLDERS = {
    "linux": "Linux_x64",
    "mac": "Mac",
    "mac_arm": "Mac_Arm",
    "win32": "Win",
    "win64": "Win_x64",
}
_ARCHIVE_NAMES = {
    "linux": "chrome-linux",
    "mac": "chrome-mac",
    "mac_arm": "chrome-mac",
    "win32": "chrome-win",
    "win64": "chrome-win",
}
_EXECUTABLES = {
    "linux": ("chrome-linux", "chrome"),
    "mac": ("chrome-mac", "Chromium.app", "Contents", "MacOS", "Chromium"),
    "mac_arm": ("chrome-mac", "Chromium.app", "Contents", "MacOS", "Chromium"),
    "win32": ("chrome-win", "chrome.exe"),
    "win64": ("chrome-win", "chrome.exe"),
}


@dataclass(frozen=True, slots=True)
class BrowserManifest:
    """Pinned Chromium revision shipped with the package."""

    revision: str
    download_host: str = DEFAULT_DOWNLOAD_HOST


def load_manifest(path: Path | None = None) -> BrowserManifest:
    manifest_path = path or MANIFEST_PATH
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ProvisioningError(f"Unable to read browser manifest '{manifest_path}': {exc}") from exc
    revision = payload.get("chromium_revision") if isinstance(payload, dict) else None
    if not revision:
        raise ProvisioningError(f"Browser manifest '{manifest_path}' defines no revision.")
    host = payload.get("download_host") or DEFAULT_DOWNLOAD_HOST
    return BrowserManifest(revision=str(revision), download_host=str(host))


def detect_platform(system: str | None = None, machine: str | None = None) -> str:
    """Return the snapshot platform name for the running interpreter."""
    system_name = (system or sys.platform).lower()
    machine_name = (machine or _platform.machine()).lower()
    if system_name.startswith("darwin"):
        return "mac_arm" if machine_name in {"arm64", "aarch64"} else "mac"
    if system_name.startswith(("win", "cygwin")):
        if machine is None:
            return "win64" if sys.maxsize > 2**32 else "win32"
        return "win64" if machine_name in {"amd64", "x86_64", "arm64"} else "win32"
    if system_name.startswith("linux"):
        return "linux"
    raise ProvisioningError(f"Unsupported platform for Chromium snapshots: {system_name}")


@dataclass(frozen=True, slots=True)
class BinaryRevision:
    """An installed (or installable) Chromium revision."""

    revision: str
    install_path: Path
    platform: str

    @property
    def executable_path(self) -> Path:
        return self.install_path.joinpath(*_EXECUTABLES[self.platform])

    @property
    def local(self) -> bool:
        return self.install_path.is_dir()


def _extract_archive(archive_path: Path, destination: Path) -> None:
    with zipfile.ZipFile(archive_path) as archive:
        for member in archive.infolist():
            extracted = Path(archive.extract(member, destination))
            mode = (member.external_attr >> 16) & 0o777
            if mode and not member.is_dir():
                extracted.chmod(mode)


def _make_executable(path: Path) -> None:
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class BrowserFetcher:
    """Revision store for Chromium snapshots under ``<user dir>/browsers``."""

    def __init__(
        self,
        *,
        platform: str | None = None,
        root: Path | None = None,
        host: str = DEFAULT_DOWNLOAD_HOST,
        transport: Transport | None = None,
    ) -> None:
        self.platform = platform or detect_platform()
        if self.platform not in PLATFORMS:
            raise ProvisioningError(f"Unknown Chromium platform '{self.platform}'.")
        self._root = root
        self.host = host.rstrip("/")
        self.transport = transport or Transport()

    def with_transport(self, transport: Transport) -> BrowserFetcher:
        return BrowserFetcher(
            platform=self.platform, root=self._root, host=self.host, transport=transport
        )

    @property
    def root(self) -> Path:
        if self._root is not None:
            self._root.mkdir(parents=True, exist_ok=True)
            return self._root
        return user_data_dir("browsers")

    def download_url(self, revision: str) -> str:
        folder = _SNAPSHOT_FOLDERS[self.platform]
        archive = _ARCHIVE_NAMES[self.platform]
        return f"{self.host}/chromium-browser-snapshots/{folder}/{revision}/{archive}.zip"

    def folder(self, revision: str) -> Path:
        return self.root / f"{self.platform}-{revision}"

    def revision_info(self, revision: str) -> BinaryRevision:
        return BinaryRevision(
            revision=str(revision), install_path=self.folder(revision), platform=self.platform
        )

    def local_revisions(self) -> list[str]:
        """Return the revisions installed for this fetcher's platform."""
        prefix = f"{self.platform}-"
        revisions: list[str] = []
        for entry in sorted(self.root.iterdir()):
            if entry.is_dir() and entry.name.startswith(prefix):
                revisions.append(entry.name.removeprefix(prefix))
        return revisions

    def download(
        self, revision: str, *, progress: ProgressCallback | None = None
    ) -> BinaryRevision:
        """Install ``revision``, returning its info. Complete installs are reused."""
        info = self.revision_info(revision)
        if info.executable_path.is_file():
            return info
        if info.local:
            # Leftover from an interrupted install.
            shutil.rmtree(info.install_path, ignore_errors=True)

        url = self.download_url(revision)
        root = self.root
        with tempfile.TemporaryDirectory(prefix=".prettymd-download-", dir=root) as tmpdir:
            archive_path = Path(tmpdir) / f"{_ARCHIVE_NAMES[self.platform]}.zip"
            download_file(url, archive_path, transport=self.transport, progress=progress)
            staging = Path(tmpdir) / "extracted"
            staging.mkdir()
            try:
                _extract_archive(archive_path, staging)
            except zipfile.BadZipFile as exc:
                raise ProvisioningError(f"Downloaded archive from {url} is corrupt: {exc}") from exc
            os.replace(staging, info.install_path)

        executable = info.executable_path
        if not executable.is_file():
            shutil.rmtree(info.install_path, ignore_errors=True)
            raise ProvisioningError(
                f"Chromium executable not found in archive contents for r{revision}"
            )
        _make_executable(executable)
        logger.debug("Installed Chromium r%s into %s", revision, info.install_path)
        return info

    def remove(self, revision: str) -> None:
        folder = self.folder(revision)
        try:
            shutil.rmtree(folder)
        except OSError as exc:
            raise ProvisioningError(f"Unable to remove Chromium r{revision}: {exc}") from exc


__all__ = [
    "DEFAULT_DOWNLOAD_HOST",
    "MANIFEST_PATH",
    "PLATFORMS",
    "BinaryRevision",
    "BrowserFetcher",
    "BrowserManifest",
    "detect_platform",
    "load_manifest",
]
