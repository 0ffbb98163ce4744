import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from typing import Any, Dict, List, Optional

import yaml

from dbtunnel.utils.exceptions import ConfigurationError


CONFIG_PATH_ENV = "DBTUNNEL_CONFIG"
ENV_PREFIX = "DBTUNNEL_"


@dataclass(frozen=True)
class InferenceLimits:
    """
    Sampling caps and thresholds used by schema inference and
    result normalization.

    They trade accuracy for bounded latency on large inputs.
    """
    max_array_depth: int = 5
    array_sample_size: int = 10
    document_sample_size: int = 20
    nullability_sample_rows: int = 100
    max_value_depth: int = 64
    dominance_threshold: float = 0.8


@dataclass(frozen=True)
class Settings:
    service_name: str = "dbtunnel"
    connection_string_header: str = "ConnectionString"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    limits: InferenceLimits = field(default_factory=InferenceLimits)


def _coerce(value: Any, current: Any, name: str) -> Any:
    """
    Convert a raw YAML/env value to the type of the current default.
    """
    try:
        if isinstance(current, bool):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "y")
            return bool(value)
        if isinstance(current, int):
            return int(value)
        if isinstance(current, float):
            return float(value)
        if isinstance(current, list):
            if isinstance(value, str):
                return [v.strip() for v in value.split(",") if v.strip()]
            return list(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for '{name}': {value!r}") from e


def _overlay(obj, values: Dict[str, Any]):
    known = {f.name: getattr(obj, f.name) for f in fields(obj)}
    changes = {}

    for key, value in values.items():
        if key not in known:
            raise ConfigurationError(f"Unknown setting: {key}")
        if key == "limits":
            if not isinstance(value, dict):
                raise ConfigurationError("'limits' must be a mapping")
            changes[key] = _overlay(known[key], value)
        else:
            changes[key] = _coerce(value, known[key], key)

    return replace(obj, **changes)


def _read_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root must be a mapping: {path}")
    return data


def _env_values(environ) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    limits: Dict[str, Any] = {}

    limit_names = {f.name for f in fields(InferenceLimits)}
    setting_names = {f.name for f in fields(Settings)} - {"limits"}

    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX) or key == CONFIG_PATH_ENV:
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in limit_names:
            limits[name] = raw
        elif name in setting_names:
            values[name] = raw

    if limits:
        values["limits"] = limits
    return values


def load_settings(path: Optional[str] = None, environ=None) -> Settings:
    """
    Build settings from defaults, then YAML file, then environment.

    The YAML file is `path` or the file named by DBTUNNEL_CONFIG.
    """
    environ = os.environ if environ is None else environ
    settings = Settings()

    config_path = path or environ.get(CONFIG_PATH_ENV)
    if config_path:
        settings = _overlay(settings, _read_yaml(config_path))

    return _overlay(settings, _env_values(environ))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
