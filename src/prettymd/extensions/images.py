"""Markdown extensions rewriting image sources through an asset resolver."""

from __future__ import annotations

from collections.abc import Callable
from xml.etree import ElementTree

from bs4 import BeautifulSoup
from markdown import Markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.treeprocessors import Treeprocessor


SourceRewriter = Callable[[str], str]


def rewrite_html_images(fragment: str, rewrite: SourceRewriter) -> str:
    """Rewrite every ``<img src>`` of an HTML fragment and serialise it back."""
    soup = BeautifulSoup(fragment, "html.parser")
    images = soup.find_all("img")
    if not images:
        return fragment
    for image in images:
        src = image.get("src")
        if src is None:
            continue
        image["src"] = rewrite(str(src))
    return str(soup)


class _ImageTreeprocessor(Treeprocessor):
    def __init__(self, md: Markdown, rewrite: SourceRewriter) -> None:
        super().__init__(md)
        self.rewrite = rewrite

    def run(self, root: ElementTree.Element) -> None:  # type: ignore[override]
        for image in root.iter("img"):
            src = image.get("src")
            if src is not None:
                image.set("src", self.rewrite(src))


class _RawHtmlImagePostprocessor(Postprocessor):
    """Rewrite images inside stashed raw HTML before it is restored."""

    def __init__(self, md: Markdown, rewrite: SourceRewriter) -> None:
        super().__init__(md)
        self.rewrite = rewrite

    def run(self, text: str) -> str:
        blocks = self.md.htmlStash.rawHtmlBlocks
        for index, block in enumerate(blocks):
            if isinstance(block, str) and "<img" in block.lower():
                blocks[index] = rewrite_html_images(block, self.rewrite)
        return text


class ImageSourceExtension(Extension):
    """Pass every Markdown image ``src`` through ``rewrite``."""

    def __init__(self, rewrite: SourceRewriter, **kwargs: object) -> None:
        self.rewrite = rewrite
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        md.treeprocessors.register(_ImageTreeprocessor(md, self.rewrite), "prettymd_images", 10)


class RawHtmlImageExtension(Extension):
    """Pass every ``<img src>`` found in raw HTML through ``rewrite``."""

    def __init__(self, rewrite: SourceRewriter, **kwargs: object) -> None:
        self.rewrite = rewrite
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        # raw_html restores the stash at priority 30.
        processor = _RawHtmlImagePostprocessor(md, self.rewrite)
        md.postprocessors.register(processor, "prettymd_raw_html_images", 35)


__all__ = ["ImageSourceExtension", "RawHtmlImageExtension", "rewrite_html_images"]
