from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

from prettymd.adapters import export
from prettymd.core.config import ExportType, build_render_config
from prettymd.core.exceptions import ExportError


class _FakePage:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.staged_html: str | None = None

    def goto(self, url: str, **kwargs: Any) -> None:
        assert url.startswith("file:///")
        self.staged_html = Path(url.removeprefix("file://")).read_text(encoding="utf-8")
        self.calls.append(("goto", kwargs))

    def emulate_media(self, **kwargs: Any) -> None:
        self.calls.append(("emulate_media", kwargs))

    def pdf(self, **kwargs: Any) -> None:
        Path(kwargs["path"]).write_bytes(b"%PDF-1.4")
        self.calls.append(("pdf", kwargs))

    def screenshot(self, **kwargs: Any) -> None:
        Path(kwargs["path"]).write_bytes(b"image")
        self.calls.append(("screenshot", kwargs))


@pytest.fixture
def fake_page(monkeypatch) -> dict[str, Any]:
    state: dict[str, Any] = {"page": _FakePage(), "executable": "unset"}

    @contextmanager
    def _browser_page(executable_path):
        state["executable"] = executable_path
        yield state["page"]

    monkeypatch.setattr(export, "_browser_page", _browser_page)
    return state


def _source(tmp_path: Path) -> Path:
    source = tmp_path / "notes.md"
    source.write_text("# Notes\n", encoding="utf-8")
    return source


def test_html_export_writes_next_to_source(tmp_path: Path) -> None:
    source = _source(tmp_path)

    target = export.export_by_type(source, "<html></html>", "html", build_render_config({}))

    assert target == tmp_path / "notes.html"
    assert target.read_text(encoding="utf-8") == "<html></html>"


def test_output_path_override(tmp_path: Path) -> None:
    source = _source(tmp_path)
    config = build_render_config({"outputPath": str(tmp_path / "out" / "final.html")})

    target = export.export_by_type(source, "<p>x</p>", ExportType.HTML, config)

    assert target == tmp_path / "out" / "final.html"
    assert target.is_file()


def test_pdf_export_prints_the_staged_page(fake_page, tmp_path: Path) -> None:
    source = _source(tmp_path)
    chrome = tmp_path / "chrome"

    target = export.export_by_type(
        source, "<p>pdf</p>", "pdf", build_render_config({}), executable_path=chrome
    )

    page = fake_page["page"]
    assert target == tmp_path / "notes.pdf"
    assert target.read_bytes().startswith(b"%PDF")
    assert fake_page["executable"] == chrome
    assert page.staged_html == "<p>pdf</p>"
    assert [name for name, _ in page.calls] == ["goto", "emulate_media", "pdf"]
    assert page.calls[0][1] == {"wait_until": "networkidle"}
    assert page.calls[1][1] == {"media": "print"}
    pdf_options = page.calls[2][1]
    assert pdf_options["format"] == "A4"
    assert pdf_options["print_background"] is True
    assert pdf_options["margin"]["top"] == "1.5cm"
    assert not list(tmp_path.glob(".*.prettymd.html"))


@pytest.mark.parametrize(("kind", "quality"), [("png", None), ("jpeg", 100)])
def test_image_exports_capture_the_full_page(fake_page, tmp_path: Path, kind: str, quality) -> None:
    source = _source(tmp_path)

    target = export.export_by_type(source, "<p>img</p>", kind, build_render_config({}))

    assert target == tmp_path / f"notes.{kind}"
    name, options = fake_page["page"].calls[-1]
    assert name == "screenshot"
    assert options["full_page"] is True
    assert options["type"] == kind
    assert options.get("quality") == quality


def test_configured_executable_is_used_when_none_is_provisioned(fake_page, tmp_path: Path) -> None:
    source = _source(tmp_path)
    config = build_render_config({"executablePath": str(tmp_path / "custom-chrome")})

    export.export_by_type(source, "<p/>", "png", config)

    assert fake_page["executable"] == tmp_path / "custom-chrome"


def test_staged_file_is_removed_when_capture_fails(monkeypatch, tmp_path: Path) -> None:
    source = _source(tmp_path)

    @contextmanager
    def _broken_page(_executable_path):
        raise ExportError("Chromium export failed: launch refused")
        yield  # pragma: no cover

    monkeypatch.setattr(export, "_browser_page", _broken_page)

    with pytest.raises(ExportError, match="launch refused"):
        export.export_by_type(source, "<p/>", "pdf", build_render_config({}))

    assert not list(tmp_path.glob(".*.prettymd.html"))


def test_unwritable_html_target_raises_export_error(tmp_path: Path) -> None:
    source = _source(tmp_path)
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    config = build_render_config({"outputPath": str(blocker / "out.html")})

    with pytest.raises(ExportError, match="Unable to write"):
        export.export_by_type(source, "<p/>", "html", config)
