"""Rich progress reporting for Chromium downloads."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from rich.console import Console


@contextmanager
def download_progress(
    console: Console, description: str = "Downloading Chromium"
) -> Iterator[Callable[[int], None]]:
    """Yield a percentage callback; the bar only appears once a download starts."""
    from rich.progress import (
        BarColumn,
        Progress,
        SpinnerColumn,
        TaskID,
        TextColumn,
        TimeElapsedColumn,
    )

    progress = Progress(
        SpinnerColumn(),
        TextColumn(f"[bold cyan]{description}"),
        BarColumn(),
        TextColumn("{task.completed:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    task_id: TaskID | None = None

    def _report(percent: int) -> None:
        nonlocal task_id
        if task_id is None:
            progress.start()
            task_id = progress.add_task(description, total=100)
        progress.update(task_id, completed=min(max(percent, 0), 100))

    try:
        yield _report
    finally:
        if task_id is not None:
            progress.stop()


__all__ = ["download_progress"]
