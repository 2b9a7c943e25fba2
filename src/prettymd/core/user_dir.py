"""Location of the per-user data prettymd keeps between runs."""

from __future__ import annotations

import os
from pathlib import Path


__all__ = ["HOME_ENV", "user_data_dir", "user_root"]

HOME_ENV = "PRETTYMD_HOME"


def user_root() -> Path:
    """Return ``$PRETTYMD_HOME``, or ``~/.prettymd`` when it is unset."""
    configured = os.environ.get(HOME_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".prettymd"


def user_data_dir(*parts: str, create: bool = True) -> Path:
    target = user_root().joinpath(*parts)
    if create:
        target.mkdir(parents=True, exist_ok=True)
    return target
