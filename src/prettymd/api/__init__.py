"""Facade aggregating the high-level prettymd conversion entry points.

`ExportOrchestrator` runs one document through provisioning, rendering,
composition and export, returning an `ExportResult` instead of raising.
`convert_markdown` wraps a fresh orchestrator for one-off conversions.

Usage Example
:
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> from prettymd.api import convert_markdown
    >>> with TemporaryDirectory() as tmpdir:
    ...     path = Path(tmpdir) / "notes.md"
    ...     _ = path.write_text("# Notes")
    ...     result = convert_markdown(path, {"type": "html"})  # doctest: +SKIP
"""

from __future__ import annotations

from .service import ExportOrchestrator, ExportResult, ExportStage, convert_markdown


__all__ = [
    "ExportOrchestrator",
    "ExportResult",
    "ExportStage",
    "convert_markdown",
]
