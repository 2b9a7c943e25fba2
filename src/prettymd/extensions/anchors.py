"""Markdown extension assigning slug ids to headings."""

from __future__ import annotations

from html import unescape
from xml.etree import ElementTree

from markdown import Markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import HTML_PLACEHOLDER_RE
from slugify import slugify


_HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}


def heading_slug(text: str, used: set[str]) -> str:
    """Return a unique slug for ``text``, suffixing ``-1``, ``-2`` on collisions."""
    base = slugify(text) or "section"
    candidate = base
    counter = 1
    while candidate in used:
        candidate = f"{base}-{counter}"
        counter += 1
    used.add(candidate)
    return candidate


class _AnchorTreeprocessor(Treeprocessor):
    """Give every heading an ``id`` before the table of contents is built."""

    def run(self, root: ElementTree.Element) -> None:  # type: ignore[override]
        used = {element.get("id") for element in root.iter() if element.get("id")}
        for element in root.iter():
            if element.tag not in _HEADINGS or element.get("id"):
                continue
            text = HTML_PLACEHOLDER_RE.sub("", "".join(element.itertext()))
            element.set("id", heading_slug(unescape(text).strip(), used))


class AnchorExtension(Extension):
    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        # The toc tree processor runs at priority 5 and keeps existing ids.
        md.treeprocessors.register(_AnchorTreeprocessor(md), "prettymd_anchors", 6)


def makeExtension(**_: object) -> AnchorExtension:  # pragma: no cover - API hook  # noqa: N802
    return AnchorExtension()


__all__ = ["AnchorExtension", "heading_slug", "makeExtension"]
