"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from prettymd.core.config import ExportType


INPUTS_PANEL = "Input Handling"
RENDERING_PANEL = "Rendering"
BROWSER_PANEL = "Browser"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

InputPathArgument = Annotated[
    Path,
    typer.Argument(
        metavar="INPUT",
        help="Markdown document to export.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigFileOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML or JSON file with export settings. Command-line flags take precedence.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ExportTypeOption = Annotated[
    ExportType | None,
    typer.Option(
        "--type",
        "-t",
        case_sensitive=False,
        help="Artifact to produce (defaults to pdf).",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

OutputPathOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output file. Defaults to the input path with the export type's suffix.",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

BreaksOption = Annotated[
    bool | None,
    typer.Option(
        "--breaks/--no-breaks",
        help="Turn single newlines inside paragraphs into line breaks.",
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

StagesOption = Annotated[
    str | None,
    typer.Option(
        "--stages",
        help="Comma-separated transform stages to enable (checkbox, anchors, toc, math, diagrams).",
        rich_help_panel=RENDERING_PANEL,
    ),
]

ExecutablePathOption = Annotated[
    Path | None,
    typer.Option(
        "--executable-path",
        help="Chromium executable to use instead of the downloaded revision.",
        dir_okay=False,
        rich_help_panel=BROWSER_PANEL,
    ),
]

ProxyOption = Annotated[
    str | None,
    typer.Option(
        "--proxy",
        help="Proxy URL used for the Chromium download.",
        rich_help_panel=BROWSER_PANEL,
    ),
]

FailFastOption = Annotated[
    bool,
    typer.Option(
        "--fail-fast",
        help="Abort before rendering when Chromium cannot be provisioned.",
        rich_help_panel=BROWSER_PANEL,
    ),
]

VerbosityOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "BreaksOption",
    "ConfigFileOption",
    "DebugOption",
    "ExecutablePathOption",
    "ExportTypeOption",
    "FailFastOption",
    "InputPathArgument",
    "OutputPathOption",
    "ProxyOption",
    "StagesOption",
    "VerbosityOption",
]
