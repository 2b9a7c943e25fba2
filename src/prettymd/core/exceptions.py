"""Exception hierarchy shared by the rendering and provisioning pipelines."""

from __future__ import annotations


class PrettyMdError(RuntimeError):
    """Base exception for prettymd failures."""


class ConfigError(PrettyMdError):
    """Raised when a configuration source cannot be loaded or validated."""


class ResolutionError(PrettyMdError):
    """Raised when an asset reference cannot be parsed into a usable URI."""


class RenderError(PrettyMdError):
    """Raised when Markdown cannot be converted into HTML."""


class ProvisioningError(PrettyMdError):
    """Raised when a browser revision cannot be discovered or installed."""


class ExportError(PrettyMdError):
    """Raised when an export backend fails to produce its artifact."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigError",
    "ExportError",
    "PrettyMdError",
    "ProvisioningError",
    "RenderError",
    "ResolutionError",
    "exception_hint",
    "exception_messages",
]
