"""Markdown conversion utilities for prettymd."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import PurePath
from typing import Any

from prettymd.adapters.assets import AssetPathResolver
from prettymd.core.config import RenderConfig
from prettymd.core.diagnostics import DiagnosticEmitter
from prettymd.core.documents import Document, RenderedContent
from prettymd.core.exceptions import RenderError
from prettymd.extensions.toc import ensure_toc_marker

from .stages import StageContext, TransformStage, build_extensions, select_stages


__all__ = [
    "BASE_MARKDOWN_EXTENSIONS",
    "MarkdownRenderer",
    "ensure_toc_marker",
    "render_markdown",
]

logger = logging.getLogger(__name__)

BASE_MARKDOWN_EXTENSIONS = ["tables", "sane_lists"]


class MarkdownRenderer:
    """Render Markdown into an HTML fragment through the transform stages."""

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        stages: Sequence[TransformStage] | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.config = config or RenderConfig()
        self.stages = list(stages) if stages is not None else select_stages(self.config.stages)
        self.emitter = emitter

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def render(self, source_text: str, document_path: str | PurePath) -> RenderedContent:
        """Convert ``source_text`` for the document stored at ``document_path``."""
        resolver = AssetPathResolver(
            document_path, self.config.export_type, emitter=self.emitter
        )
        context = StageContext(config=self.config, resolver=resolver, emitter=self.emitter)

        processor = self._build_processor(context)
        try:
            html = processor.convert(source_text)
        except Exception as exc:  # pragma: no cover - library-controlled
            raise RenderError(f"Failed to convert Markdown source: {exc}") from exc

        return RenderedContent(html=html, warnings=list(resolver.warnings))

    def render_document(self, document: Document) -> RenderedContent:
        return self.render(document.raw_text, document.source_path)

    def _build_processor(self, context: StageContext) -> Any:
        try:
            import markdown
        except ModuleNotFoundError as exc:  # pragma: no cover - environment dependent
            raise RenderError(
                "Python Markdown is required to render documents; install the 'markdown' package."
            ) from exc

        extensions: list[Any] = list(BASE_MARKDOWN_EXTENSIONS)
        if self.config.breaks:
            extensions.append("nl2br")
        try:
            extensions.extend(build_extensions(self.stages, context))
            return markdown.Markdown(extensions=extensions, output_format="html")
        except Exception as exc:
            raise RenderError(f"Unable to construct the Markdown processor: {exc}") from exc


def render_markdown(
    source_text: str,
    document_path: str | PurePath,
    config: RenderConfig | None = None,
) -> str:
    """Render ``source_text`` and return the HTML fragment."""
    content = MarkdownRenderer(config).render(source_text, document_path)
    for warning in content.warnings:
        logger.debug("Render warning: %s", warning)
    return content.html
