"""YAML configuration loader.

Notes:
- `launcher.command` overrides the platform's URI handler (empty -> default).
- `defaults` pre-fill zoom level, map style and traffic for the command line;
  they are validated with the same rules the builder enforces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

import bingmaps_uri  # type: ignore


@dataclass(frozen=True)
class LauncherConfig:
    command: List[str] = field(default_factory=list)
    workers: int = 1
    log_path: Optional[str] = None


@dataclass(frozen=True)
class BuilderDefaults:
    map_style: Optional[bingmaps_uri.MapStyle] = None
    zoom_level: Optional[float] = None
    show_traffic: Optional[bool] = None


@dataclass(frozen=True)
class Config:
    project_name: str
    project_version: str
    launcher: LauncherConfig
    defaults: BuilderDefaults

    def validate(self) -> None:
        if self.launcher.workers < 1:
            raise ValueError("launcher.workers must be >= 1.")
        zoom = self.defaults.zoom_level
        if zoom is not None and not bingmaps_uri.is_valid_zoom(zoom):
            raise ValueError(
                f"defaults.zoom_level={zoom} must be greater than 0 and at most 20."
            )


def _require_key(d: Dict[str, Any], key: str) -> Any:
    if key not in d:
        raise KeyError(f"Missing required configuration key: {key}")
    return d[key]


def _optional(d: Dict[str, Any], key: str, cast) -> Any:
    value = d.get(key)
    return None if value is None else cast(value)


def _parse_style(value: Any) -> bingmaps_uri.MapStyle:
    if not isinstance(value, str):
        raise ValueError(f"defaults.map_style must be a string, got {value!r}.")
    return bingmaps_uri.parse_map_style(value)


def _parse_flag(value: Any) -> bool:
    # Quoted YAML strings such as 'off' are rejected, not cast.
    if not isinstance(value, bool):
        raise ValueError(f"defaults.show_traffic must be true or false, got {value!r}.")
    return value


def load_config(path: str) -> Config:
    """Load and validate YAML configuration from `path`."""
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    project = raw.get("project", {})
    launcher_raw = raw.get("launcher") or {}
    defaults_raw = raw.get("defaults") or {}

    command = launcher_raw.get("command") or []
    if isinstance(command, str):
        command = command.split()

    cfg = Config(
        project_name=_require_key(project, "name"),
        project_version=str(_require_key(project, "version")),
        launcher=LauncherConfig(
            command=[str(part) for part in command],
            workers=int(launcher_raw.get("workers", 1)),
            log_path=launcher_raw.get("log_path"),
        ),
        defaults=BuilderDefaults(
            map_style=_optional(defaults_raw, "map_style", _parse_style),
            zoom_level=_optional(defaults_raw, "zoom_level", float),
            show_traffic=_optional(defaults_raw, "show_traffic", _parse_flag),
        ),
    )

    cfg.validate()
    return cfg
