"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from nhspd.common.errors import ConfigError
from nhspd.common.fs import read_yaml
from nhspd.common.schema import validate_batch_size, validate_coordinate_policy, validate_import_config

CONFIG_FILENAME = "import.yml"


@dataclass(frozen=True)
class SinkSettings:
    type: str
    path: str | None = None
    url: str | None = None
    timeout: dict[str, float] = field(default_factory=dict)
    retry: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportSettings:
    batch_size: int
    coordinate_policy: str
    encoding: str
    sink: SinkSettings
    include_wgs84: bool = False
    source_member: str | None = None

    def with_overrides(
        self,
        *,
        batch_size: int | None = None,
        coordinate_policy: str | None = None,
        sink_type: str | None = None,
    ) -> "ImportSettings":
        settings = self
        if batch_size is not None:
            settings = replace(settings, batch_size=validate_batch_size(batch_size))
        if coordinate_policy is not None:
            settings = replace(settings, coordinate_policy=validate_coordinate_policy(coordinate_policy))
        if sink_type is not None and sink_type != settings.sink.type:
            sink = replace(settings.sink, type=sink_type)
            if sink_type == "jsonl" and not sink.path:
                raise ConfigError("sink.path is required for the jsonl sink")
            if sink_type == "http" and not sink.url:
                raise ConfigError("sink.url is required for the http sink")
            settings = replace(settings, sink=sink)
        return settings


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def settings_from_dict(cfg: dict) -> ImportSettings:
    sink = cfg["sink"]
    source = cfg.get("source") or {}
    return ImportSettings(
        batch_size=cfg["batch_size"],
        coordinate_policy=cfg["coordinate_policy"],
        encoding=cfg["encoding"],
        include_wgs84=cfg.get("include_wgs84", False),
        source_member=source.get("member"),
        sink=SinkSettings(
            type=sink["type"],
            path=sink.get("path"),
            url=sink.get("url"),
            timeout=dict(sink.get("timeout") or {}),
            retry=dict(sink.get("retry") or {}),
        ),
    )


def load_import_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ImportSettings:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    return settings_from_dict(validate_import_config(cfg, allow_unknown=allow_unknown))
