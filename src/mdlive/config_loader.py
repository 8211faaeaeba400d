"""Load MdliveConfig from mdlive.yaml / mdlive.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from mdlive._errors import ConfigError
from mdlive.config import MdliveConfig

_CONFIG_KEYS = frozenset({
    "index", "host", "port", "throttle_ms", "shutdown_timeout", "console", "open_browser",
})


def load_config(root: Path, **overrides: object) -> MdliveConfig:
    """Load MdliveConfig for root, optionally merging mdlive.yaml.

    Looks for mdlive.yaml, mdlive.yml, or mdlive.toml in root (or in the
    parent directory when root is a single file). If found, loads and merges
    with overrides. Overrides that are ``None`` are treated as unset.

    Raises:
        ConfigError: If a config file exists but cannot be parsed.

    """
    root = Path(root).resolve()
    config_dir = root.parent if root.is_file() else root
    file_config = _read_mdlive_config(config_dir)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    try:
        return MdliveConfig(root=root, **merged)
    except TypeError as exc:
        msg = f"Invalid mdlive configuration: {exc}"
        raise ConfigError(msg) from exc


def _read_mdlive_config(config_dir: Path) -> dict[str, object]:
    """Read mdlive config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("mdlive.yaml", "mdlive.yml"):
        path = config_dir / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = config_dir / "mdlive.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_mdlive_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_mdlive_section(data)


def _flatten_mdlive_section(data: dict[str, object]) -> dict[str, object]:
    """Extract mdlive.* keys into top-level config, ignoring unknown keys."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _CONFIG_KEYS:
            result[k] = v
    section = data.get("mdlive")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _CONFIG_KEYS:
                result[k] = v
    return result
