from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ibanlib.utils.paths import default_config_path


DEFAULT_SETTINGS: Dict[str, Any] = {
    "validation": {"strict": True},
    "registry": {"path": None},
    "logging": {"enabled": False, "log_dir": None},
    "output": {"style": "formatted"},
}

OUTPUT_STYLES = ("formatted", "canonical")


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def save_yaml(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")


def deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def deep_set(d: Dict[str, Any], keys: list[str], value: Any) -> None:
    cur = d
    for k in keys[:-1]:
        if k not in cur or not isinstance(cur[k], dict):
            cur[k] = {}
        cur = cur[k]
    cur[keys[-1]] = value


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the YAML config (if any) on top of DEFAULT_SETTINGS."""
    cfg_path = Path(path) if path else default_config_path()
    raw = load_yaml(cfg_path)
    if not isinstance(raw, dict):
        raise ValueError(f"Config {cfg_path} must contain a mapping, got {type(raw).__name__}")
    settings = _merge(DEFAULT_SETTINGS, raw)

    style = deep_get(settings, ["output", "style"])
    if style not in OUTPUT_STYLES:
        raise ValueError(f"Config {cfg_path}: output.style must be one of {', '.join(OUTPUT_STYLES)}, got {style!r}")
    return settings
