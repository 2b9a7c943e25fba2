"""Mermaid and PlantUML sources turned into diagram markup.

Mermaid fences become ``<pre class="mermaid">`` blocks rendered client-side.
PlantUML fences and bare ``@startuml`` ... ``@enduml`` blocks become images
served by a PlantUML server. The fences are superfences custom fences; bare
blocks are caught by a preprocessor running once fences are stashed.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import partial
from html import escape
import re
from typing import Any

from markdown import Markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from plantuml import PlantUML

from prettymd.core.config import DEFAULT_PLANTUML_SERVER


_START_RE = re.compile(r"^\s*@startuml\b")
_END_RE = re.compile(r"^\s*@enduml\s*$")

MERMAID_LANGUAGES = ("mermaid",)
PLANTUML_LANGUAGES = ("plantuml", "puml", "uml")


def plantuml_url(source: str, server: str = DEFAULT_PLANTUML_SERVER) -> str:
    return PlantUML(url=f"{server.rstrip('/')}/svg/").get_url(source)


def plantuml_image(source: str, server: str = DEFAULT_PLANTUML_SERVER) -> str:
    text = source.strip("\n")
    if not _START_RE.match(text):
        text = f"@startuml\n{text}\n@enduml"
    return f'<p><img src="{escape(plantuml_url(text, server))}" alt="uml diagram"></p>'


def mermaid_block(source: str) -> str:
    text = escape(source.strip("\n"), quote=False)
    return f'<pre class="mermaid">{text}</pre>'


def format_mermaid(
    source: str,
    language: str,
    css_class: str,
    options: Mapping[str, Any] | None,
    md: Markdown,
    **kwargs: Any,
) -> str:
    return mermaid_block(source)


def format_plantuml(
    source: str,
    language: str,
    css_class: str,
    options: Mapping[str, Any] | None,
    md: Markdown,
    server: str = DEFAULT_PLANTUML_SERVER,
    **kwargs: Any,
) -> str:
    return plantuml_image(source, server)


def diagram_fences(server: str = DEFAULT_PLANTUML_SERVER) -> list[dict[str, Any]]:
    """Return the superfences entries for Mermaid and PlantUML fences."""
    fences: list[dict[str, Any]] = [
        {"name": name, "class": "mermaid", "format": format_mermaid}
        for name in MERMAID_LANGUAGES
    ]
    fences.extend(
        {"name": name, "class": "uml", "format": partial(format_plantuml, server=server)}
        for name in PLANTUML_LANGUAGES
    )
    return fences


class _BareUmlPreprocessor(Preprocessor):
    def __init__(self, md: Markdown, server: str) -> None:
        super().__init__(md)
        self.server = server

    def run(self, lines: list[str]) -> list[str]:
        result: list[str] = []
        pending: list[str] | None = None

        for line in lines:
            if pending is None:
                if _START_RE.match(line):
                    pending = [line]
                else:
                    result.append(line)
                continue
            pending.append(line)
            if _END_RE.match(line):
                placeholder = self.md.htmlStash.store(plantuml_image("\n".join(pending), self.server))
                result.extend(["", placeholder, ""])
                pending = None

        if pending is not None:
            # No closing marker; keep the lines as written.
            result.extend(pending)
        return result


class DiagramExtension(Extension):
    """Render bare ``@startuml`` blocks; fences come from :func:`diagram_fences`."""

    def __init__(self, **kwargs: object) -> None:
        self.config = {
            "server": [DEFAULT_PLANTUML_SERVER, "Base URL of the PlantUML server"],
        }
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        # superfences stashes fenced blocks at priority 25.
        processor = _BareUmlPreprocessor(md, str(self.getConfig("server")))
        md.preprocessors.register(processor, "prettymd_bare_uml", 24)


def makeExtension(**kwargs: object) -> DiagramExtension:  # pragma: no cover - API hook  # noqa: N802
    return DiagramExtension(**kwargs)


__all__ = [
    "DiagramExtension",
    "diagram_fences",
    "format_mermaid",
    "format_plantuml",
    "makeExtension",
    "mermaid_block",
    "plantuml_image",
    "plantuml_url",
]
