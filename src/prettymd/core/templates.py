"""Compose rendered Markdown into a standalone HTML document."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path
import sys

from .diagnostics import DiagnosticEmitter
from .documents import ComposedDocument, Document, RenderedContent
from .mustache import replace_mustaches


logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).resolve().parents[1] / "assets"
TEMPLATE_PATH = ASSETS_DIR / "template" / "template.html"
STYLES_DIR = ASSETS_DIR / "styles"

# Base theme, math styles, document styles, print overrides.
DEFAULT_STYLE_FILES: tuple[str, ...] = (
    "highlight.css",
    "math.css",
    "markdown.css",
    "markdown-pdf.css",
)

BUILTIN_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<title>{{title}}</title>
<meta http-equiv="Content-type" content="text/html;charset=UTF-8">
{{{style}}}
</head>
<body>
{{{content}}}
</body>
</html>
"""


def default_style_sources() -> list[Path]:
    """Return the bundled style sheets in their cascade order."""
    return [STYLES_DIR / name for name in DEFAULT_STYLE_FILES]


def _strip_file_scheme(value: str) -> str:
    if not value.startswith("file://"):
        return value
    if sys.platform.startswith("win"):
        return value.removeprefix("file:///").removeprefix("file://")
    return value.removeprefix("file://")


def read_text_source(source: str | Path) -> str:
    """Read a UTF-8 text file, returning an empty string when it is unavailable."""
    raw = str(source)
    if not raw:
        return ""
    path = Path(_strip_file_scheme(raw))
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.debug("Skipping unreadable style source %s: %s", path, exc)
        return ""


def make_style_block(source: str | Path) -> str:
    css = read_text_source(source)
    if not css:
        return ""
    return f"\n<style>\n{css}\n</style>\n"


def read_styles(style_sources: Sequence[str | Path]) -> str:
    """Concatenate the style blocks of ``style_sources`` in order."""
    return "".join(make_style_block(source) for source in style_sources)


def compose(
    body_html: str,
    document_title: str,
    style_sources: Sequence[str | Path],
    *,
    template_path: Path | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> ComposedDocument:
    """Merge ``body_html`` with the title and styles into the page template."""
    template_file = template_path or TEMPLATE_PATH
    template = read_text_source(template_file)
    if not template.strip():
        logger.warning("Template %s is unavailable; using the built-in template.", template_file)
        template = BUILTIN_TEMPLATE

    style_block = read_styles(style_sources)
    final_html = replace_mustaches(
        template,
        [{"title": document_title, "style": style_block, "content": body_html}],
        emitter=emitter,
        source=str(template_file),
    )
    return ComposedDocument(
        title=document_title,
        style_block=style_block,
        body_html=body_html,
        final_html=final_html,
    )


class TemplateComposer:
    """Bind a template and a style cascade for repeated compositions."""

    def __init__(
        self,
        *,
        template_path: Path | None = None,
        style_sources: Sequence[str | Path] | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.template_path = template_path
        self.style_sources = (
            list(style_sources) if style_sources is not None else default_style_sources()
        )
        self.emitter = emitter

    def compose(self, body_html: str, document_title: str) -> ComposedDocument:
        return compose(
            body_html,
            document_title,
            self.style_sources,
            template_path=self.template_path,
            emitter=self.emitter,
        )

    def compose_document(self, content: RenderedContent, document: Document) -> ComposedDocument:
        return self.compose(content.html, document.title)


__all__ = [
    "BUILTIN_TEMPLATE",
    "DEFAULT_STYLE_FILES",
    "TemplateComposer",
    "compose",
    "default_style_sources",
    "make_style_block",
    "read_styles",
    "read_text_source",
]
