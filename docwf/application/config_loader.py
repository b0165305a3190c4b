from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from docwf.application.config_models import EngineConfig
from docwf.domain.constants import CONFIG_DIRNAME, CONFIG_FILENAME
from docwf.domain.errors import ConfigurationError


class ConfigLoadError(ConfigurationError):
    def __init__(self, message: str, *, path: Path | None = None, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


def _defaults() -> dict[str, Any]:
    return EngineConfig().model_dump()


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge mapping keys. For non-dict values, overlay wins."""
    merged: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML file whose root must be a mapping; a missing file is empty."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ConfigLoadError("Failed to read config file", path=path, cause=e) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigLoadError("Malformed YAML", path=path, cause=e) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigLoadError("YAML root must be a mapping", path=path)

    return data


def config_path(root: Path) -> Path:
    return root / CONFIG_DIRNAME / CONFIG_FILENAME


def load_config(
    *,
    project_root: Path | None = None,
    user_home: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> EngineConfig:
    """
    Load and merge config with precedence (highest wins):
    CLI overrides > project > user > defaults.

    Files:
      - user:    user_home/.docwf/config.yml
      - project: project_root/.docwf/config.yml

    Raises:
        ConfigLoadError: A config file is unreadable, malformed, or holds
            unknown or invalid keys.
    """
    project_root = project_root or Path.cwd()
    user_home = user_home or Path.home()

    cfg = _defaults()
    cfg = _deep_merge(cfg, _load_yaml_mapping(config_path(user_home)))
    cfg = _deep_merge(cfg, _load_yaml_mapping(config_path(project_root)))
    cfg = _deep_merge(cfg, {k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return EngineConfig.model_validate(cfg)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid configuration ({e.error_count()} error(s))", cause=e) from e
