"""Utility helpers for resolving mustache-style template tokens.

``{{ name }}`` inserts the HTML-escaped value, ``{{{ name }}}`` inserts it
verbatim. Values are looked up by dotted path across an ordered list of
contexts. Substitution is a single pass, so placeholders appearing inside an
inserted value are never expanded.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from html import escape
import re
from typing import Any

from .diagnostics import DiagnosticEmitter


_MUSTACHE_RE = re.compile(
    r"\{\{\{\s*(?P<raw>[^\}\s][^\}]*?)\s*\}\}\}"
    r"|\{\{\s*(?P<escaped>[^\{\}\s][^\}]*?)\s*\}\}"
)
_MISSING = object()


def _lookup(context: Mapping[str, Any] | None, path: str) -> Any:
    current: Any = context
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current.get(part)
    return current


def _resolve_value(path: str, contexts: Sequence[Mapping[str, Any] | None]) -> Any:
    for context in contexts:
        value = _lookup(context, path)
        if value is not _MISSING:
            return value
    return _MISSING


def replace_mustaches(
    text: str,
    contexts: Sequence[Mapping[str, Any] | None],
    *,
    emitter: DiagnosticEmitter | None = None,
    source: str | None = None,
) -> str:
    """Replace mustache tokens in ``text`` using ``contexts``."""

    def _warn(message: str) -> None:
        if emitter:
            emitter.warning(message)

    def _replacement(match: re.Match[str]) -> str:
        raw_path = match.group("raw")
        verbatim = raw_path is not None
        path = (raw_path if verbatim else match.group("escaped")).strip()
        value = _resolve_value(path, contexts)
        if value is _MISSING or value is None:
            location = f" in {source}" if source else ""
            _warn(f"Unresolved template token '{match.group(0)}'{location}; leaving it as-is.")
            return match.group(0)
        rendered = str(value)
        return rendered if verbatim else escape(rendered, quote=True)

    return _MUSTACHE_RE.sub(_replacement, text)


__all__ = ["replace_mustaches"]
