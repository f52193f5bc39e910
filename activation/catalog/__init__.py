"""Module catalog: YAML manifests describing candidate modules.

Responsibilities:
- Load all manifest YAML files from a catalog directory
- Validate schema (pydantic) and condition declarations
- Reject duplicate module identities
"""
from .loader import (  # noqa: F401
    load_catalog,
    load_catalog_files,
    parse_manifests,
    clear_catalog_cache,
)
from .manifest import ModuleManifest  # noqa: F401

__all__ = [
    "load_catalog",
    "load_catalog_files",
    "parse_manifests",
    "clear_catalog_cache",
    "ModuleManifest",
]
