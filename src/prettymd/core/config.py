"""Configuration models used by the export pipeline.

RenderConfig

`export_type` (`ExportType`, alias `type`)
: Artifact to produce: `html`, `pdf`, `png` or `jpeg`. Editor settings often
  store a list of types; the first entry wins. Every export type other than
  `html` rewrites asset references to absolute `file:` URIs.

`breaks` (`bool`)
: Convert single newlines inside paragraphs into `<br />` tags.

`executable_path` (`Path | None`, alias `executablePath`)
: Chromium executable to drive instead of the bundled revision. When the file
  exists, no download ever happens.

`proxy` (`str | None`)
: Proxy URL used for the Chromium download. Applied to the download session
  only.

`provisioning` (`ProvisioningPolicy`)
: `best-effort` (default) carries on with the export when the Chromium
  download fails; `fail-fast` aborts before rendering.

`output_path` (`Path | None`, alias `outputPath`)
: Destination of the exported artifact. Defaults to the source path with the
  export type's suffix.

`stages` (`tuple[str, ...] | None`)
: Names of the optional transform stages to enable. `None` enables all of
  them (checkbox, anchors, toc, math, diagrams).

`plantuml_server` (`str`, alias `plantumlServer`)
: Base URL of the PlantUML server referenced by rendered diagrams.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .exceptions import ConfigError


DEFAULT_PLANTUML_SERVER = "https://www.plantuml.com/plantuml"


class ExportType(str, Enum):
    """Artifacts the export pipeline can produce."""

    HTML = "html"
    PDF = "pdf"
    PNG = "png"
    JPEG = "jpeg"

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    @property
    def rewrites_assets(self) -> bool:
        """Return whether asset references are rewritten to ``file:`` URIs."""
        return self is not ExportType.HTML


class ProvisioningPolicy(str, Enum):
    """What the orchestrator does when the Chromium download fails."""

    BEST_EFFORT = "best-effort"
    FAIL_FAST = "fail-fast"


class RenderConfig(BaseModel):
    """Caller-supplied options for one conversion."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    export_type: ExportType = Field(default=ExportType.PDF, alias="type")
    breaks: bool = False
    executable_path: Path | None = Field(default=None, alias="executablePath")
    proxy: str | None = None
    provisioning: ProvisioningPolicy = ProvisioningPolicy.BEST_EFFORT
    output_path: Path | None = Field(default=None, alias="outputPath")
    stages: tuple[str, ...] | None = None
    plantuml_server: str = Field(default=DEFAULT_PLANTUML_SERVER, alias="plantumlServer")

    @field_validator("export_type", mode="before")
    @classmethod
    def _first_export_type(cls, value: Any) -> Any:
        if isinstance(value, list | tuple):
            value = value[0] if value else None
        if value is None or (isinstance(value, str) and not value.strip()):
            return ExportType.PDF
        if isinstance(value, str):
            lowered = value.strip().lower()
            return "jpeg" if lowered == "jpg" else lowered
        return value

    @field_validator("executable_path", "proxy", "output_path", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("stages", mode="before")
    @classmethod
    def _split_stages(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(chunk.strip() for chunk in value.split(",") if chunk.strip())
        return value

    def with_overrides(self, **overrides: Any) -> RenderConfig:
        """Return a validated copy with ``None`` overrides ignored."""
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return build_render_config(data)


def build_render_config(payload: Mapping[str, Any] | None = None) -> RenderConfig:
    """Validate a mapping into a :class:`RenderConfig`, raising ``ConfigError``."""
    try:
        return RenderConfig.model_validate(dict(payload or {}))
    except ValidationError as exc:
        raise ConfigError(f"Invalid render configuration: {exc}") from exc


def load_render_config(path: Path) -> RenderConfig:
    """Load a YAML or JSON configuration file."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file '{path}': {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            payload = json.loads(raw) if raw.strip() else {}
        else:
            payload = yaml.safe_load(raw) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to parse configuration file '{path}': {exc}") from exc

    if not isinstance(payload, Mapping):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping.")
    return build_render_config(payload)


__all__ = [
    "DEFAULT_PLANTUML_SERVER",
    "ExportType",
    "ProvisioningPolicy",
    "RenderConfig",
    "build_render_config",
    "load_render_config",
]
