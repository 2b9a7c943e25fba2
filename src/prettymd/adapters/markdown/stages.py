"""Transform stages composed by the Markdown renderer.

Each stage contributes one Python-Markdown extension configured for the
document being rendered. Optional stages are selected by name through
``RenderConfig.stages``; hook stages are always part of the chain.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from markdown.extensions import Extension
from pymdownx import arithmatex, tasklist

from prettymd.adapters.assets import AssetPathResolver
from prettymd.core.config import RenderConfig
from prettymd.core.diagnostics import DiagnosticEmitter
from prettymd.core.exceptions import ConfigError
from prettymd.extensions.anchors import AnchorExtension
from prettymd.extensions.diagrams import DiagramExtension, diagram_fences
from prettymd.extensions.highlight import code_fences_extension
from prettymd.extensions.images import ImageSourceExtension, RawHtmlImageExtension
from prettymd.extensions.toc import TOC_MARKER, TableOfContentsExtension


@dataclass(slots=True)
class StageContext:
    """Per-render state handed to every stage.

    ``fences`` collects superfences custom fences contributed by optional
    stages; the code hook registers them with its own code fence.
    """

    config: RenderConfig
    resolver: AssetPathResolver
    emitter: DiagnosticEmitter | None = None
    fences: list[dict[str, Any]] = field(default_factory=list)


@runtime_checkable
class TransformStage(Protocol):
    """A named contributor to the Markdown processing chain."""

    name: str

    def extension(self, context: StageContext) -> Extension | None: ...


class CheckboxStage:
    name = "checkbox"

    def extension(self, context: StageContext) -> Extension:
        return tasklist.makeExtension()


class AnchorStage:
    name = "anchors"

    def extension(self, context: StageContext) -> Extension:
        return AnchorExtension()


class TocStage:
    name = "toc"

    def extension(self, context: StageContext) -> Extension:
        return TableOfContentsExtension()


class MathStage:
    name = "math"

    def extension(self, context: StageContext) -> Extension:
        return arithmatex.makeExtension(generic=True)


class DiagramStage:
    name = "diagrams"

    def extension(self, context: StageContext) -> Extension:
        server = context.config.plantuml_server
        context.fences.extend(diagram_fences(server))
        return DiagramExtension(server=server)


class ImageStage:
    name = "images"

    def extension(self, context: StageContext) -> Extension:
        return ImageSourceExtension(context.resolver.resolve_or_original)


class RawHtmlStage:
    """Rewrite images in raw HTML, only for exports that load from ``file:``."""

    name = "raw_html"

    def extension(self, context: StageContext) -> Extension | None:
        if not context.resolver.rewrites_assets:
            return None
        return RawHtmlImageExtension(context.resolver.resolve_or_original)


class CodeBlockStage:
    name = "code"

    def extension(self, context: StageContext) -> Extension:
        return code_fences_extension(context.fences)


OPTIONAL_STAGES: tuple[TransformStage, ...] = (
    CheckboxStage(),
    AnchorStage(),
    TocStage(),
    MathStage(),
    DiagramStage(),
)

HOOK_STAGES: tuple[TransformStage, ...] = (
    ImageStage(),
    RawHtmlStage(),
    CodeBlockStage(),
)


def optional_stage_names() -> list[str]:
    return [stage.name for stage in OPTIONAL_STAGES]


def select_stages(names: Iterable[str] | None = None) -> list[TransformStage]:
    """Return the optional stages named in ``names`` followed by the hooks.

    ``None`` selects every optional stage. The chain order never depends on
    the order of ``names``.
    """
    if names is None:
        return [*OPTIONAL_STAGES, *HOOK_STAGES]

    requested = {name.strip().lower() for name in names if name.strip()}
    unknown = requested.difference(optional_stage_names())
    if unknown:
        available = ", ".join(optional_stage_names())
        raise ConfigError(
            f"Unknown transform stage(s): {', '.join(sorted(unknown))}. Available: {available}."
        )
    chosen = [stage for stage in OPTIONAL_STAGES if stage.name in requested]
    return [*chosen, *HOOK_STAGES]


def build_extensions(
    stages: Sequence[TransformStage], context: StageContext
) -> list[Extension]:
    extensions: list[Extension] = []
    for stage in stages:
        extension = stage.extension(context)
        if extension is not None:
            extensions.append(extension)
    return extensions


__all__ = [
    "HOOK_STAGES",
    "OPTIONAL_STAGES",
    "TOC_MARKER",
    "AnchorStage",
    "CheckboxStage",
    "CodeBlockStage",
    "DiagramStage",
    "ImageStage",
    "MathStage",
    "RawHtmlStage",
    "StageContext",
    "TocStage",
    "TransformStage",
    "build_extensions",
    "optional_stage_names",
    "select_stages",
]
