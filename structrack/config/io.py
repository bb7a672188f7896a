"""YAML persistence for StructrackConfig with ``section.field=value`` overrides."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from structrack.utils.logging import get_logger, log_event

from .schema import StructrackConfig

LOGGER = get_logger(__name__)

_SECTION_FIELDS: dict[str, frozenset[str]] = {
    section.name: frozenset(f.name for f in fields(getattr(StructrackConfig(), section.name)))
    for section in fields(StructrackConfig)
}


def load_yaml_config(
    path: str | Path, overrides: Sequence[str] | None = None
) -> StructrackConfig:
    """Read a StructrackConfig from YAML, then apply ``overrides`` in order."""
    config_path = Path(path)
    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValueError(f"{config_path}: top-level YAML config must be a mapping")

    cfg = apply_overrides(StructrackConfig.from_dict(payload), overrides or ())
    log_event(
        LOGGER,
        "config_loaded",
        level="DEBUG",
        fields={"path": str(config_path), "override_count": len(overrides or ())},
    )
    return cfg


def dump_yaml_config(cfg: StructrackConfig, path: str | Path) -> Path:
    """Write ``cfg`` as YAML that ``load_yaml_config`` reads back unchanged."""
    config_path = Path(path)
    config_path.write_text(yaml.safe_dump(cfg.to_dict(), sort_keys=False), encoding="utf-8")
    return config_path


def apply_overrides(cfg: StructrackConfig, overrides: Sequence[str]) -> StructrackConfig:
    """Return a copy of ``cfg`` with overrides such as ``trainer.c=10`` applied.

    Values are parsed as YAML scalars. Unknown sections or fields raise KeyError;
    the result is validated as a whole, so an invalid value raises ValueError.
    """
    if not overrides:
        return cfg

    changes: dict[str, dict[str, Any]] = {}
    for raw in overrides:
        section, name, value = _parse_override(raw)
        changes.setdefault(section, {})[name] = value

    sections = {
        section: asdict(getattr(cfg, section)) | changes.get(section, {})
        for section in _SECTION_FIELDS
    }
    return StructrackConfig.from_dict(sections)


def _parse_override(raw: str) -> tuple[str, str, Any]:
    key, sep, raw_value = raw.partition("=")
    if not sep:
        raise ValueError(f"Override must contain '=': {raw}")
    key = key.strip()
    if not key:
        raise ValueError(f"Override key is empty: {raw}")

    section, _, name = key.partition(".")
    if name not in _SECTION_FIELDS.get(section, ()):
        raise KeyError(f"Unknown override path: {key}")
    return section, name, yaml.safe_load(raw_value)
