"""Normalise asset references found in rendered markup into loadable URIs.

Exports that run inside a browser page built from an in-memory document have
no base URL, so every relative or filesystem-absolute reference is rewritten
into an absolute ``file:`` URI. HTML exports keep their references relative to
the saved file.
"""

from __future__ import annotations

import logging
import ntpath
import os
from pathlib import PurePath
import posixpath
import re
from types import ModuleType
from urllib.parse import unquote, urlsplit

from prettymd.core.config import ExportType
from prettymd.core.diagnostics import DiagnosticEmitter
from prettymd.core.exceptions import ResolutionError


logger = logging.getLogger(__name__)

_QUOTE_CHARS = re.compile(r"[\"\u201c\u201d]")
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:[\\/]")
_FILE_ROOT = "file:///"


def _clean(raw_src: str) -> str:
    value = unquote(raw_src, errors="strict")
    value = _QUOTE_CHARS.sub("", value)
    return value.replace("\\", "/").replace("#", "%23")


def _path_flavor(document_path: str) -> ModuleType:
    """Pick path semantics from the document path itself, not the host."""
    if _DRIVE_PREFIX.match(document_path) or "\\" in document_path:
        return ntpath
    return os.path


def _scheme(value: str) -> str:
    try:
        scheme = urlsplit(value).scheme
    except ValueError as exc:
        raise ResolutionError(f"Unable to parse asset reference '{value}': {exc}") from exc
    # ``C:/images/a.png`` parses with scheme ``c``; treat it as a drive.
    if len(scheme) == 1 and value[1:3] == ":/":
        return ""
    return scheme.lower()


def _resolve_against(value: str, document_path: str) -> str:
    flavor = _path_flavor(document_path)
    base_dir = flavor.dirname(document_path)
    resolved = flavor.normpath(flavor.join(base_dir, value))
    if flavor is os.path and not flavor.isabs(resolved):
        resolved = os.path.abspath(resolved)
    return resolved.replace("\\", "/").replace("#", "%23")


def resolve_asset_path(
    raw_src: str,
    document_path: str | PurePath,
    export_type: ExportType | str,
) -> str:
    """Return ``raw_src`` rewritten for ``export_type``.

    Raises ``ResolutionError`` when the reference cannot be decoded or parsed.
    """
    if not isinstance(raw_src, str):
        raise ResolutionError(f"Asset reference must be a string, got {type(raw_src).__name__}.")
    try:
        cleaned = _clean(raw_src)
    except UnicodeDecodeError as exc:
        raise ResolutionError(f"Unable to decode asset reference '{raw_src}': {exc}") from exc

    if ExportType(export_type) is ExportType.HTML:
        return cleaned

    scheme = _scheme(cleaned)
    if scheme == "file":
        if cleaned.startswith(_FILE_ROOT):
            return cleaned
        return re.sub(r"^file://", _FILE_ROOT, cleaned, count=1)

    document = str(document_path)
    if scheme and not _path_flavor(document).isabs(cleaned):
        return cleaned

    resolved = _resolve_against(cleaned, document)
    if resolved.startswith("//"):
        return f"file:{resolved}"
    if resolved.startswith("/"):
        return f"file://{resolved}"
    return f"{_FILE_ROOT}{resolved}"


class AssetPathResolver:
    """Resolve asset references for one document and collect failures."""

    def __init__(
        self,
        document_path: str | PurePath,
        export_type: ExportType | str,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.document_path = document_path
        self.export_type = ExportType(export_type)
        self.emitter = emitter
        self.warnings: list[str] = []

    @property
    def rewrites_assets(self) -> bool:
        return self.export_type.rewrites_assets

    def resolve(self, raw_src: str) -> str:
        return resolve_asset_path(raw_src, self.document_path, self.export_type)

    def resolve_or_original(self, raw_src: str) -> str:
        """Resolve ``raw_src``, keeping the original value when resolution fails."""
        try:
            return self.resolve(raw_src)
        except ResolutionError as exc:
            message = f"Keeping unresolved asset reference '{raw_src}': {exc}"
            logger.warning(message)
            self.warnings.append(message)
            if self.emitter is not None:
                self.emitter.warning(message, exc)
            return raw_src


__all__ = ["AssetPathResolver", "resolve_asset_path"]
