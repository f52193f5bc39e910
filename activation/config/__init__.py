"""Config subsystem public API.

Provides:
    get_config() -> AggregatedConfig (resolver, host, properties, logging)
    as_dict()    -> dict representation
    ConfigError  -> raised on validation / unknown key
"""

from .loader import (  # noqa: F401
    AggregatedConfig,
    get_config,
    as_dict,
    load_config_dir,
    flatten_properties,
    ConfigError,
    clear_config_cache,
    EXCLUDE_PROPERTY,
)
from .logging_setup import configure_logging  # noqa: F401

__all__ = [
    "AggregatedConfig",
    "get_config",
    "as_dict",
    "load_config_dir",
    "flatten_properties",
    "ConfigError",
    "clear_config_cache",
    "configure_logging",
    "EXCLUDE_PROPERTY",
]
