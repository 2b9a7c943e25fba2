"""Conversion orchestration for the CLI and embedding integrations."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Any

from prettymd.adapters.browser.provisioner import (
    ProvisioningResult,
    ProvisioningState,
    RendererBinaryProvisioner,
)
from prettymd.adapters.export import export_by_type
from prettymd.adapters.markdown import MarkdownRenderer
from prettymd.core.config import ProvisioningPolicy, RenderConfig, build_render_config
from prettymd.core.diagnostics import (
    DiagnosticEmitter,
    LoggingEmitter,
    ensure_emitter,
    record_event,
)
from prettymd.core.documents import Document
from prettymd.core.exceptions import PrettyMdError, exception_hint
from prettymd.core.templates import TemplateComposer


__all__ = [
    "ExportOrchestrator",
    "ExportResult",
    "ExportStage",
    "convert_markdown",
]

logger = logging.getLogger(__name__)

ExportCallable = Callable[..., Path]


class ExportStage(str, Enum):
    """Pipeline step an :class:`ExportResult` refers to."""

    CONFIGURE = "configure"
    PROVISION = "provision"
    READ = "read"
    RENDER = "render"
    COMPOSE = "compose"
    EXPORT = "export"
    DONE = "done"


@dataclass(slots=True)
class ExportResult:
    """Outcome of one conversion, successful or not."""

    ok: bool
    stage: ExportStage
    output_path: Path | None = None
    provisioning: ProvisioningResult | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    exception: BaseException | None = field(default=None, repr=False)


class ExportOrchestrator:
    """Provision, read, render, compose and export a single document."""

    def __init__(
        self,
        *,
        provisioner: RendererBinaryProvisioner | None = None,
        composer: TemplateComposer | None = None,
        exporter: ExportCallable | None = None,
        emitter: DiagnosticEmitter | None = None,
        progress: Callable[[int], None] | None = None,
    ) -> None:
        self.emitter = ensure_emitter(emitter)
        self.provisioner = provisioner or RendererBinaryProvisioner(emitter=self.emitter)
        self.composer = composer or TemplateComposer(emitter=self.emitter)
        self.exporter = exporter or export_by_type
        self.progress = progress

    def run(self, source_path: str | Path, config: RenderConfig | None = None) -> ExportResult:
        """Convert ``source_path``; failures are reported in the returned result."""
        settings = config or RenderConfig()
        warnings: list[str] = []

        provisioning = self.provisioner.provision(settings, progress=self.progress)
        if (
            provisioning.state is ProvisioningState.FAILED
            and settings.provisioning is ProvisioningPolicy.FAIL_FAST
        ):
            return self._failure(
                ExportStage.PROVISION,
                provisioning.error or "Chromium provisioning failed.",
                provisioning=provisioning,
            )

        try:
            document = Document.read(source_path)
        except PrettyMdError as exc:
            return self._failure(ExportStage.READ, exc, provisioning=provisioning)

        try:
            renderer = MarkdownRenderer(settings, emitter=self.emitter)
            content = renderer.render_document(document)
        except PrettyMdError as exc:
            return self._failure(ExportStage.RENDER, exc, provisioning=provisioning)
        warnings.extend(content.warnings)

        try:
            composed = self.composer.compose_document(content, document)
        except (PrettyMdError, OSError) as exc:
            return self._failure(
                ExportStage.COMPOSE, exc, provisioning=provisioning, warnings=warnings
            )

        try:
            output_path = self.exporter(
                document.source_path,
                composed.final_html,
                settings.export_type,
                settings,
                executable_path=provisioning.executable_path,
            )
        except (PrettyMdError, OSError) as exc:
            return self._failure(
                ExportStage.EXPORT, exc, provisioning=provisioning, warnings=warnings
            )

        record_event(
            self.emitter,
            "export_written",
            {"path": str(output_path), "type": settings.export_type.value},
        )
        return ExportResult(
            ok=True,
            stage=ExportStage.DONE,
            output_path=output_path,
            provisioning=provisioning,
            warnings=warnings,
        )

    def _failure(
        self,
        stage: ExportStage,
        error: BaseException | str,
        *,
        provisioning: ProvisioningResult | None = None,
        warnings: list[str] | None = None,
    ) -> ExportResult:
        if isinstance(error, BaseException):
            message = exception_hint(error) or error.__class__.__name__
            exception: BaseException | None = error
        else:
            message = error
            exception = None
        logger.debug("Export aborted during %s: %s", stage.value, message)
        return ExportResult(
            ok=False,
            stage=stage,
            provisioning=provisioning,
            warnings=list(warnings or []),
            error=message,
            exception=exception,
        )


def convert_markdown(
    source_path: str | Path,
    config: RenderConfig | Mapping[str, Any] | None = None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> ExportResult:
    """Convert one Markdown file using a fresh orchestrator.

    ``config`` may be a :class:`RenderConfig` or a mapping using the same keys
    (including the ``type``/``executablePath`` spellings). Diagnostics go to
    the ``logging`` module unless an ``emitter`` is given.
    """
    if config is None or isinstance(config, RenderConfig):
        settings = config
    else:
        try:
            settings = build_render_config(config)
        except PrettyMdError as exc:
            return ExportResult(
                ok=False, stage=ExportStage.CONFIGURE, error=str(exc), exception=exc
            )
    return ExportOrchestrator(emitter=emitter or LoggingEmitter()).run(source_path, settings)
