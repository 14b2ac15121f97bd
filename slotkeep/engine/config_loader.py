from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from slotkeep.engine.models import SaveConfig

ENV_OVERRIDES = {
    "SLOTKEEP_SAVE_ROOT": "root",
    "SLOTKEEP_FS_PASSWORD": "filesystem_password",
    "SLOTKEEP_EXPORT_SECRET": "export_secret",
    "SLOTKEEP_EXPORT_CIPHER": "export_cipher",
    "SLOTKEEP_AUTOSAVE": "autosave_enabled",
}


class ConfigError(ValueError):
    pass


def load_config(path: Path | None = None, env: dict[str, str] | None = None) -> SaveConfig:
    raw: dict[str, Any] = {}
    if path is not None:
        raw = _load_yaml(Path(path))
    environ = os.environ if env is None else env
    for var, key in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            raw[key] = value
    try:
        return SaveConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid save configuration: {exc}") from exc


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must hold a mapping")
    # Allow the settings to live under a top-level "saves" key.
    if isinstance(data.get("saves"), dict):
        data = data["saves"]
    return dict(data)
