"""Configuration loading & validation.

Precedence (last wins): base.yaml → overrides.local.yaml → ENV
(ACTIVATION__SECTION__KEY). Directory from ACTIVATION_CONFIG_DIR
(default ./configs).

Sections:
- resolver: enabled flag, exclusions, catalog directory, environment kind
- host: seeded capabilities, import probes, user-declared components
- properties: nested mapping, flattened to dotted keys for conditions
- logging: level + format

Unknown keys are rejected.
"""
from __future__ import annotations

import logging
import os
import pathlib
import threading
from functools import lru_cache
from typing import Any, Dict, List, Tuple, Type

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from activation import metrics
from activation.errors import validate_error_type

from .schemas.resolver import HostConfig, ResolverConfig
from .schemas.observability import LoggingConfig

logger = logging.getLogger("activation.config")


class AggregatedConfig(BaseModel):
    schema_version: int = 1
    resolver: ResolverConfig = ResolverConfig()
    host: HostConfig = HostConfig()
    properties: Dict[str, Any] = Field(default_factory=dict)
    logging: LoggingConfig = LoggingConfig()

    model_config = ConfigDict(extra="forbid")

    def flat_properties(self) -> Dict[str, Any]:
        return flatten_properties(self.properties)


DEFAULT_CONFIG_DIR = "configs"
OVERRIDES_FILE = "overrides.local.yaml"
ENV_PREFIX = "ACTIVATION__"
EXCLUDE_PROPERTY = "activation.exclude"

SUB_SCHEMA_CLASSES: Dict[str, Type[BaseModel]] = {
    "resolver": ResolverConfig,
    "host": HostConfig,
    "logging": LoggingConfig,
}


class ConfigError(Exception):
    error_type = "config-invalid"


def _read_layer(path: pathlib.Path) -> Dict[str, Any]:
    """One YAML layer; a missing file is an empty layer."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError, OSError) as e:
        raise ConfigError(f"{path.name}: unreadable: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: top level must be a mapping")
    return data


def _deep_merge(
    base: Dict[str, Any], override: Dict[str, Any]
) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _coerce_scalar(raw: str) -> Any:
    """Env values arrive as text: booleans and numbers are typed."""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _env_overrides() -> List[Tuple[List[str], str]]:
    """ACTIVATION__RESOLVER__ENABLED=false -> (['resolver', 'enabled'], ...)"""
    found = []
    for key in sorted(os.environ):
        if key.startswith(ENV_PREFIX):
            parts = key[len(ENV_PREFIX):].lower().split("__")
            found.append((parts, os.environ[key]))
    return found


def _apply_env(cfg: Dict[str, Any]) -> None:
    for parts, raw in _env_overrides():
        node = cfg
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = _coerce_scalar(raw)
        dotted = ".".join(parts)
        metrics.inc("env_override_total", {"path": dotted})
        logger.info("[config-env-override] path=%s source=env", dotted)


_lock = threading.Lock()


def _resolve_config_dir() -> pathlib.Path:
    """Resolve config directory each call honoring env var changes."""
    return pathlib.Path(
        os.getenv("ACTIVATION_CONFIG_DIR", DEFAULT_CONFIG_DIR)
    )


def _migrate_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    """Configs without schema_version are treated as version 1."""
    if "schema_version" not in data:
        logger.warning("[config-migration] schema_version missing -> 1")
        data["schema_version"] = 1
    return data


def flatten_properties(
    data: Dict[str, Any], prefix: str = ""
) -> Dict[str, Any]:
    """{'a': {'b': 1}} -> {'a.b': 1}; keys already dotted are kept."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_properties(value, dotted))
        else:
            flat[dotted] = value
    return flat


def _split_list(value: Any) -> Any:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return value


def _normalize_and_validate(raw: Dict[str, Any]) -> None:
    """Apply normalizations and bounds validation.

    Emits metrics on violations and raises ConfigError if any hard errors.
    Normalizations:
      - resolver.exclude / host.components given as "a,b" -> list
    Validations (error → raise):
      - resolver.exclude entries non-empty
      - resolver.environment non-empty
      - host.capabilities arities >= 0
    """
    errors: list[tuple[str, str, str]] = []  # (path, code, msg)
    resolver = raw.get("resolver")
    if isinstance(resolver, dict):
        if "exclude" in resolver:
            resolver["exclude"] = _split_list(resolver["exclude"])
            excl = resolver["exclude"]
            if isinstance(excl, list) and any(
                not isinstance(x, str) or not x.strip() for x in excl
            ):
                errors.append(
                    ("resolver.exclude", "config-invalid", "empty entry")
                )
        env = resolver.get("environment")
        if env is not None and (not isinstance(env, str) or not env.strip()):
            errors.append(
                ("resolver.environment", "config-invalid", "empty value")
            )

    host = raw.get("host")
    if isinstance(host, dict):
        if "components" in host:
            host["components"] = _split_list(host["components"])
        caps = host.get("capabilities")
        if isinstance(caps, dict):
            for name, count in caps.items():
                if isinstance(count, int) and count < 0:
                    errors.append(
                        (
                            f"host.capabilities.{name}",
                            "config-out-of-range",
                            ">=0 required",
                        )
                    )

    if errors:
        for path, code, _ in errors:
            metrics.inc(
                "config_validation_errors_total",
                {"path": path, "code": code},
            )
        for _, code, _ in errors:
            validate_error_type(code)
        details = ", ".join(f"{p}:{c}:{m}" for p, c, m in errors)
        raise ConfigError(f"config validation failed: {details}")


def _validate_sections(raw: Dict[str, Any]) -> Dict[str, BaseModel]:
    """Validate known sections one by one so errors name the section."""
    sections: Dict[str, BaseModel] = {}
    for name, cls in SUB_SCHEMA_CLASSES.items():
        if name not in raw:
            continue
        try:
            sections[name] = cls.model_validate(raw[name] or {})
        except ValidationError as e:
            raise ConfigError(f"section '{name}': {e}") from e
    return sections


def load_config_dir(cfg_dir: str | pathlib.Path) -> AggregatedConfig:
    cfg_dir = pathlib.Path(cfg_dir)
    layered = _deep_merge(
        _read_layer(cfg_dir / "base.yaml"),
        _read_layer(cfg_dir / OVERRIDES_FILE),
    )
    _apply_env(layered)
    raw = _migrate_legacy(layered)
    _normalize_and_validate(raw)
    sections = _validate_sections(raw)
    try:
        return AggregatedConfig.model_validate({**raw, **sections})
    except ValidationError as e:
        raise ConfigError(str(e)) from e


@lru_cache(maxsize=1)
def get_config() -> AggregatedConfig:  # noqa: D401
    with _lock:
        return load_config_dir(_resolve_config_dir())


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    get_config.cache_clear()


def as_dict() -> Dict[str, Any]:
    return get_config().model_dump()
