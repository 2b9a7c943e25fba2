"""Pygments highlighting for fenced code, dispatched by ``pymdownx.superfences``."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from html import escape
import logging
from typing import Any

from markdown import Markdown
from markdown.extensions import Extension
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound
from pymdownx import superfences


logger = logging.getLogger(__name__)

CODE_WRAPPER = '<pre class="hljs"><code><div>{body}</div></code></pre>'


def highlight_code(code: str, language: str | None) -> str:
    """Return the highlighted ``code`` inside the fixed code container.

    Unknown languages and highlighter failures fall back to escaped text.
    """
    body: str | None = None
    if language:
        try:
            lexer = get_lexer_by_name(language, stripnl=False)
        except ClassNotFound:
            lexer = None
        if lexer is not None:
            try:
                body = highlight(code, lexer, HtmlFormatter(nowrap=True))
            except Exception as exc:  # noqa: BLE001 - highlighting never aborts a render
                logger.debug("Pygments failed to highlight %s block: %s", language, exc)
                body = None
    if body is None:
        body = escape(code, quote=False)
    return CODE_WRAPPER.format(body=body)


def format_code(
    source: str,
    language: str | None,
    css_class: str,
    options: Mapping[str, Any] | None,
    md: Markdown,
    **kwargs: Any,
) -> str:
    """Superfences formatter for every fence without a dedicated handler."""
    if source and not source.endswith("\n"):
        source += "\n"
    return highlight_code(source, language)


CODE_FENCE: dict[str, Any] = {"name": "*", "class": "hljs", "format": format_code}


def code_fences_extension(custom_fences: Iterable[Mapping[str, Any]] = ()) -> Extension:
    """Return superfences configured with the code fence plus ``custom_fences``."""
    return superfences.makeExtension(
        custom_fences=[dict(CODE_FENCE), *(dict(fence) for fence in custom_fences)]
    )


__all__ = ["CODE_FENCE", "CODE_WRAPPER", "code_fences_extension", "format_code", "highlight_code"]
