"""Chromium acquisition for the browser-driven export backends."""

from __future__ import annotations

from .fetcher import BinaryRevision, BrowserFetcher, BrowserManifest, detect_platform, load_manifest
from .provisioner import (
    ProvisioningResult,
    ProvisioningState,
    RemovalOutcome,
    RendererBinaryProvisioner,
)


__all__ = [
    "BinaryRevision",
    "BrowserFetcher",
    "BrowserManifest",
    "ProvisioningResult",
    "ProvisioningState",
    "RemovalOutcome",
    "RendererBinaryProvisioner",
    "detect_platform",
    "load_manifest",
]
