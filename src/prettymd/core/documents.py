"""Document shapes passed between the rendering stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import PrettyMdError


@dataclass(frozen=True, slots=True)
class Document:
    """Markdown source read from disk."""

    source_path: Path
    raw_text: str

    @classmethod
    def read(cls, source_path: str | Path) -> Document:
        path = Path(source_path).expanduser().resolve()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PrettyMdError(f"Unable to read Markdown document '{path}': {exc}") from exc
        return cls(source_path=path, raw_text=text)

    @property
    def title(self) -> str:
        return self.source_path.name


@dataclass(slots=True)
class RenderedContent:
    """HTML body produced by the Markdown renderer."""

    html: str
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ComposedDocument:
    """Complete HTML document ready for an export backend."""

    title: str
    style_block: str
    body_html: str
    final_html: str


__all__ = ["ComposedDocument", "Document", "RenderedContent"]
