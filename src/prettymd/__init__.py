"""Primary public API for prettymd."""

from __future__ import annotations

from prettymd.adapters.assets import AssetPathResolver, resolve_asset_path
from prettymd.adapters.browser import (
    BrowserFetcher,
    ProvisioningResult,
    ProvisioningState,
    RendererBinaryProvisioner,
)
from prettymd.adapters.markdown import MarkdownRenderer, render_markdown
from prettymd.api import ExportOrchestrator, ExportResult, ExportStage, convert_markdown
from prettymd.core.config import ExportType, ProvisioningPolicy, RenderConfig
from prettymd.core.documents import ComposedDocument, Document, RenderedContent
from prettymd.core.exceptions import (
    ConfigError,
    ExportError,
    PrettyMdError,
    ProvisioningError,
    RenderError,
    ResolutionError,
)
from prettymd.core.templates import TemplateComposer, compose
from prettymd.version import get_version


__version__ = get_version()

__all__ = [
    "AssetPathResolver",
    "BrowserFetcher",
    "ComposedDocument",
    "ConfigError",
    "Document",
    "ExportError",
    "ExportOrchestrator",
    "ExportResult",
    "ExportStage",
    "ExportType",
    "MarkdownRenderer",
    "PrettyMdError",
    "ProvisioningError",
    "ProvisioningPolicy",
    "ProvisioningResult",
    "ProvisioningState",
    "RenderConfig",
    "RenderError",
    "RenderedContent",
    "RendererBinaryProvisioner",
    "ResolutionError",
    "TemplateComposer",
    "__version__",
    "compose",
    "convert_markdown",
    "render_markdown",
    "resolve_asset_path",
]
