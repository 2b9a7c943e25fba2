"""Export backends turning a composed HTML document into the final artifact."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Any, Protocol

from prettymd.core.config import ExportType, RenderConfig
from prettymd.core.exceptions import ExportError


logger = logging.getLogger(__name__)

PDF_OPTIONS: dict[str, Any] = {
    "format": "A4",
    "print_background": True,
    "margin": {"top": "1.5cm", "right": "1cm", "bottom": "1cm", "left": "1cm"},
}
JPEG_QUALITY = 100

_PLAYWRIGHT_HINT = (
    "Install Playwright browser dependencies with `playwright install-deps`, "
    "or point --executable-path at a working Chromium build."
)


class ExportBackend(Protocol):
    def __call__(
        self,
        source_path: Path,
        html: str,
        export_type: ExportType,
        config: RenderConfig,
        *,
        executable_path: Path | None = None,
    ) -> Path: ...


def default_output_path(source_path: Path, export_type: ExportType, config: RenderConfig) -> Path:
    """Return the artifact path: ``config.output_path`` or the source with a new suffix."""
    if config.output_path is not None:
        return Path(config.output_path).expanduser()
    return Path(source_path).with_suffix(export_type.suffix)


def _write_text(target: Path, html: str) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Unable to write '{target}': {exc}") from exc


@contextmanager
def _browser_page(executable_path: Path | None) -> Iterator[Any]:
    """Yield a Playwright page backed by ``executable_path`` (or Playwright's own Chromium)."""
    try:
        from playwright.sync_api import Error as PlaywrightError, sync_playwright
    except ModuleNotFoundError as exc:  # pragma: no cover - environment dependent
        raise ExportError(
            "Browser exports require the 'playwright' package; install it or export to HTML."
        ) from exc

    launch_options: dict[str, Any] = {"headless": True}
    if executable_path is not None:
        launch_options["executable_path"] = str(executable_path)

    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(**launch_options)
            try:
                yield browser.new_page()
            finally:
                browser.close()
    except PlaywrightError as exc:
        message = str(exc).strip().splitlines()[0] if str(exc).strip() else exc.__class__.__name__
        raise ExportError(f"Chromium export failed: {message}. {_PLAYWRIGHT_HINT}") from exc


@contextmanager
def _staged_html(source_path: Path, html: str) -> Iterator[Path]:
    """Write ``html`` beside the source so ``file:`` assets load from a ``file:`` page."""
    staged = Path(source_path).with_name(f".{Path(source_path).stem}.prettymd.html")
    _write_text(staged, html)
    try:
        yield staged
    finally:
        staged.unlink(missing_ok=True)


def _render_with_browser(
    source_path: Path,
    html: str,
    executable_path: Path | None,
    capture: Callable[[Any], None],
) -> None:
    with _staged_html(source_path, html) as staged, _browser_page(executable_path) as page:
        page.goto(staged.resolve().as_uri(), wait_until="networkidle")
        capture(page)


def export_html(
    source_path: Path,
    html: str,
    export_type: ExportType,
    config: RenderConfig,
    *,
    executable_path: Path | None = None,
) -> Path:
    del executable_path
    target = default_output_path(source_path, export_type, config)
    _write_text(target, html)
    return target


def export_pdf(
    source_path: Path,
    html: str,
    export_type: ExportType,
    config: RenderConfig,
    *,
    executable_path: Path | None = None,
) -> Path:
    target = default_output_path(source_path, export_type, config)
    target.parent.mkdir(parents=True, exist_ok=True)

    def _capture(page: Any) -> None:
        page.emulate_media(media="print")
        page.pdf(path=str(target), **PDF_OPTIONS)

    _render_with_browser(source_path, html, executable_path, _capture)
    return target


def export_image(
    source_path: Path,
    html: str,
    export_type: ExportType,
    config: RenderConfig,
    *,
    executable_path: Path | None = None,
) -> Path:
    target = default_output_path(source_path, export_type, config)
    target.parent.mkdir(parents=True, exist_ok=True)
    options: dict[str, Any] = {"path": str(target), "full_page": True, "type": export_type.value}
    if export_type is ExportType.JPEG:
        options["quality"] = JPEG_QUALITY

    def _capture(page: Any) -> None:
        page.screenshot(**options)

    _render_with_browser(source_path, html, executable_path, _capture)
    return target


BACKENDS: dict[ExportType, ExportBackend] = {
    ExportType.HTML: export_html,
    ExportType.PDF: export_pdf,
    ExportType.PNG: export_image,
    ExportType.JPEG: export_image,
}


def export_by_type(
    source_path: Path,
    html: str,
    export_type: ExportType | str,
    config: RenderConfig,
    *,
    executable_path: Path | None = None,
) -> Path:
    """Dispatch ``html`` to the backend registered for ``export_type``."""
    kind = ExportType(export_type)
    backend = BACKENDS.get(kind)
    if backend is None:  # pragma: no cover - every enum member is registered
        raise ExportError(f"No export backend registered for '{kind.value}'.")
    executable = executable_path or config.executable_path
    target = backend(Path(source_path), html, kind, config, executable_path=executable)
    logger.debug("Exported %s to %s", kind.value, target)
    return target


__all__ = [
    "BACKENDS",
    "ExportBackend",
    "default_output_path",
    "export_by_type",
    "export_html",
    "export_image",
    "export_pdf",
]
