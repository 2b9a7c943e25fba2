"""Make sure a Chromium binary is available before exporting.

The provisioner prefers a configured executable, then the pinned revision in
the user directory, and only then downloads the pinned revision. After a
successful download every other local revision is removed concurrently.
Failures never raise: they are reported through :class:`ProvisioningResult`.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
import zipfile

import requests

from prettymd.core.config import RenderConfig
from prettymd.core.diagnostics import DiagnosticEmitter, record_event
from prettymd.core.exceptions import PrettyMdError, exception_hint
from prettymd.core.http import TLSCertificateError, Transport, progress_percent

from .fetcher import BrowserFetcher, BrowserManifest, load_manifest


logger = logging.getLogger(__name__)

PercentCallback = Callable[[int], None]


class ProvisioningState(str, Enum):
    UNCHECKED = "unchecked"
    SATISFIED = "satisfied"
    DOWNLOADING = "downloading"
    RECONCILING = "reconciling"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RemovalOutcome:
    """Result of removing one stale revision."""

    revision: str
    removed: bool
    error: str | None = None


@dataclass(slots=True)
class ProvisioningResult:
    state: ProvisioningState
    revision: str | None = None
    executable_path: Path | None = None
    removals: list[RemovalOutcome] = field(default_factory=list)
    error: str | None = None
    downloaded: bool = False

    @property
    def ok(self) -> bool:
        return self.state is ProvisioningState.SATISFIED


class RendererBinaryProvisioner:
    """Drive the Chromium provisioning state machine for one caller."""

    def __init__(
        self,
        *,
        fetcher: BrowserFetcher | None = None,
        manifest: BrowserManifest | None = None,
        emitter: DiagnosticEmitter | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._manifest = manifest
        self.emitter = emitter
        self.max_workers = max_workers
        self.state = ProvisioningState.UNCHECKED

    @property
    def manifest(self) -> BrowserManifest:
        if self._manifest is None:
            self._manifest = load_manifest()
        return self._manifest

    def fetcher_for(self, config: RenderConfig) -> BrowserFetcher:
        transport = Transport(proxy=config.proxy)
        if self._fetcher is not None:
            return self._fetcher.with_transport(transport)
        return BrowserFetcher(host=self.manifest.download_host, transport=transport)

    @staticmethod
    def configured_executable(config: RenderConfig) -> Path | None:
        if config.executable_path is None:
            return None
        configured = Path(config.executable_path).expanduser()
        return configured if configured.exists() else None

    def executable_for(self, config: RenderConfig) -> Path | None:
        """Return the configured or bundled executable when it exists on disk."""
        configured = self.configured_executable(config)
        if configured is not None:
            return configured
        bundled = self.fetcher_for(config).revision_info(self.manifest.revision)
        if bundled.executable_path.exists():
            return bundled.executable_path
        return None

    def is_satisfied(self, config: RenderConfig) -> bool:
        try:
            return self.executable_for(config) is not None
        except (PrettyMdError, OSError) as exc:
            logger.debug("Chromium lookup failed: %s", exc)
            return False

    def provision(
        self, config: RenderConfig, progress: PercentCallback | None = None
    ) -> ProvisioningResult:
        """Ensure a Chromium binary exists, downloading the pinned revision if needed."""
        self.state = ProvisioningState.UNCHECKED
        configured = self.configured_executable(config)
        if configured is not None:
            return self._found(configured, "configured", None)

        try:
            revision = self.manifest.revision
            fetcher = self.fetcher_for(config)
            bundled = fetcher.revision_info(revision).executable_path
        except (PrettyMdError, OSError) as exc:
            return self._fail(None, exc)

        if bundled.exists():
            return self._found(bundled, "bundled", revision)

        self.state = ProvisioningState.DOWNLOADING
        url = fetcher.download_url(revision)
        record_event(self.emitter, "browser_download", {"revision": revision, "url": url})

        def _report(received: int, total: int) -> None:
            if progress is not None:
                progress(progress_percent(received, total))

        try:
            installed = fetcher.download(revision, progress=_report)
        except (
            PrettyMdError,
            OSError,
            requests.RequestException,
            TLSCertificateError,
            zipfile.BadZipFile,
        ) as exc:
            return self._fail(revision, exc)

        record_event(
            self.emitter,
            "browser_installed",
            {"revision": revision, "folder": str(installed.install_path)},
        )

        self.state = ProvisioningState.RECONCILING
        removals = self._reconcile(fetcher, revision)

        self.state = ProvisioningState.SATISFIED
        return ProvisioningResult(
            state=self.state,
            revision=revision,
            executable_path=installed.executable_path,
            removals=removals,
            downloaded=True,
        )

    def _reconcile(self, fetcher: BrowserFetcher, keep: str) -> list[RemovalOutcome]:
        try:
            stale = [revision for revision in fetcher.local_revisions() if revision != keep]
        except OSError as exc:
            logger.warning("Unable to list installed Chromium revisions: %s", exc)
            return []
        if not stale:
            return []

        outcomes: list[RemovalOutcome] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [(revision, pool.submit(fetcher.remove, revision)) for revision in stale]
            for revision, future in futures:
                try:
                    future.result()
                except (PrettyMdError, OSError) as exc:
                    outcome = RemovalOutcome(revision=revision, removed=False, error=str(exc))
                else:
                    outcome = RemovalOutcome(revision=revision, removed=True)
                record_event(
                    self.emitter,
                    "browser_removed",
                    {"revision": revision, "removed": outcome.removed, "error": outcome.error},
                )
                outcomes.append(outcome)
        return outcomes

    def _found(self, path: Path, source: str, revision: str | None) -> ProvisioningResult:
        self.state = ProvisioningState.SATISFIED
        record_event(self.emitter, "browser_found", {"path": str(path), "source": source})
        return ProvisioningResult(state=self.state, revision=revision, executable_path=path)

    def _fail(self, revision: str | None, exc: BaseException) -> ProvisioningResult:
        self.state = ProvisioningState.FAILED
        message = exception_hint(exc) or exc.__class__.__name__
        if self.emitter is not None:
            self.emitter.error(f"Chromium provisioning failed: {message}", exc)
        else:
            logger.error("Chromium provisioning failed: %s", message)
        return ProvisioningResult(state=self.state, revision=revision, error=message)


__all__ = [
    "ProvisioningResult",
    "ProvisioningState",
    "RemovalOutcome",
    "RendererBinaryProvisioner",
]
