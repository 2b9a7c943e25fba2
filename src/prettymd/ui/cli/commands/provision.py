"""Implementation of the `prettymd provision` and `prettymd revisions` commands."""

from __future__ import annotations

import typer

from prettymd.adapters.browser import BrowserFetcher, RendererBinaryProvisioner, load_manifest
from prettymd.core.config import build_render_config
from prettymd.core.exceptions import PrettyMdError

from .._options import DebugOption, ExecutablePathOption, ProxyOption, VerbosityOption
from ..diagnostics import CliEmitter
from ..progress import download_progress
from ..state import emit_error, emit_warning, get_cli_state, set_cli_state


def provision(
    executable_path: ExecutablePathOption = None,
    proxy: ProxyOption = None,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Download the pinned Chromium revision unless a usable binary already exists."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    settings = build_render_config({"executable_path": executable_path, "proxy": proxy})
    provisioner = RendererBinaryProvisioner(emitter=CliEmitter(state=state))

    with download_progress(state.console) as report:
        result = provisioner.provision(settings, progress=report)

    for removal in result.removals:
        if not removal.removed:
            emit_warning(f"Stale Chromium r{removal.revision} was not removed: {removal.error}")

    if not result.ok:
        raise typer.Exit(code=1)
    state.console.print(f"[green]Chromium ready:[/] {result.executable_path}")


def revisions() -> None:
    """List the Chromium revisions installed in the user directory."""
    from rich.table import Table

    state = get_cli_state()
    try:
        fetcher = BrowserFetcher()
        pinned = load_manifest().revision
        installed = fetcher.local_revisions()
    except (PrettyMdError, OSError) as exc:
        emit_error(f"Unable to list Chromium revisions: {exc}", exception=exc)
        raise typer.Exit(code=1) from exc

    if not installed:
        state.console.print(f"No Chromium revisions installed (pinned revision: {pinned}).")
        return

    table = Table("Revision", "Platform", "Path", "Pinned")
    for revision in installed:
        info = fetcher.revision_info(revision)
        table.add_row(
            revision, info.platform, str(info.install_path), "yes" if revision == pinned else ""
        )
    state.console.print(table)


__all__ = ["provision", "revisions"]
