"""CLI command implementations exposed via `prettymd.ui.cli`."""

from __future__ import annotations

from .convert import convert
from .provision import provision, revisions


__all__ = ["convert", "provision", "revisions"]
