"""Implementation of the `prettymd convert` command."""

from __future__ import annotations

import typer

from prettymd.api.service import ExportOrchestrator
from prettymd.core.config import ProvisioningPolicy, RenderConfig, load_render_config
from prettymd.core.exceptions import ConfigError

from .._options import (
    BreaksOption,
    ConfigFileOption,
    DebugOption,
    ExecutablePathOption,
    ExportTypeOption,
    FailFastOption,
    InputPathArgument,
    OutputPathOption,
    ProxyOption,
    StagesOption,
    VerbosityOption,
)
from ..diagnostics import CliEmitter
from ..progress import download_progress
from ..state import emit_error, set_cli_state


def convert(
    input_path: InputPathArgument,
    export_type: ExportTypeOption = None,
    output: OutputPathOption = None,
    breaks: BreaksOption = None,
    stages: StagesOption = None,
    executable_path: ExecutablePathOption = None,
    proxy: ProxyOption = None,
    fail_fast: FailFastOption = False,
    config_file: ConfigFileOption = None,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Export a Markdown document to PDF, PNG, JPEG or HTML."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    emitter = CliEmitter(state=state)

    try:
        base = load_render_config(config_file) if config_file is not None else RenderConfig()
        settings = base.with_overrides(
            export_type=export_type,
            output_path=output,
            breaks=breaks,
            stages=stages,
            executable_path=executable_path,
            proxy=proxy,
            provisioning=ProvisioningPolicy.FAIL_FAST if fail_fast else None,
        )
    except ConfigError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    with download_progress(state.console) as report:
        orchestrator = ExportOrchestrator(emitter=emitter, progress=report)
        result = orchestrator.run(input_path, settings)

    if not result.ok:
        emit_error(
            f"Export failed during {result.stage.value}: {result.error}",
            exception=result.exception,
        )
        raise typer.Exit(code=1)


__all__ = ["convert"]
