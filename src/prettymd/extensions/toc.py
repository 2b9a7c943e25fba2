"""Table of contents that is always present in the rendered document."""

from __future__ import annotations

import re

from markdown import Markdown
from markdown.extensions.toc import TocExtension
from markdown.preprocessors import Preprocessor


TOC_MARKER = "[TOC]"

_TOC_LINE_RE = re.compile(r"^ {0,3}\[toc\][ \t]*$", re.IGNORECASE)


def place_toc_marker(lines: list[str]) -> list[str]:
    """Normalise existing ``[toc]`` lines, or prepend a marker block when none exists."""
    found = False
    result: list[str] = []
    for line in lines:
        if _TOC_LINE_RE.match(line):
            found = True
            result.append(TOC_MARKER)
        else:
            result.append(line)
    if found:
        return result
    return [TOC_MARKER, "", *lines]


def ensure_toc_marker(source: str) -> str:
    """Return ``source`` with exactly one guaranteed table-of-contents marker.

    The renderer applies this after fenced code is stashed, so ``[toc]``
    lines inside code blocks are neither rewritten nor counted.
    """
    return "\n".join(place_toc_marker(source.split("\n")))


class _TocMarkerPreprocessor(Preprocessor):
    def run(self, lines: list[str]) -> list[str]:
        return place_toc_marker(lines)


class TableOfContentsExtension(TocExtension):
    """The stock toc extension, fed a marker on every document."""

    def __init__(self, **kwargs: object) -> None:
        kwargs.setdefault("marker", TOC_MARKER)
        kwargs.setdefault("permalink", False)
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        super().extendMarkdown(md)
        # Between superfences (25) and raw HTML blocks (20).
        md.preprocessors.register(_TocMarkerPreprocessor(md), "prettymd_toc_marker", 22)


__all__ = ["TOC_MARKER", "TableOfContentsExtension", "ensure_toc_marker", "place_toc_marker"]
