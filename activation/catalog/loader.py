"""Catalog loader: reads all YAML module manifests from a directory."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import yaml
from pydantic import ValidationError
from yaml import YAMLError

from activation.errors import CatalogError, MalformedConditionError
from activation.model import Module, index_modules
from .manifest import ModuleManifest

logger = logging.getLogger("activation.catalog")

_catalog_lock = threading.Lock()
_catalog_cache: Dict[Path, Tuple[Module, ...]] = {}


def _iter_manifest_files(catalog_dir: Path):
    for path in sorted(catalog_dir.iterdir()):
        if path.is_file() and path.suffix in {".yaml", ".yml"}:
            yield path


def _entries(data: Any, source: str) -> List[Any]:
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if "modules" in data:
            entries = data["modules"] or []
            if not isinstance(entries, list):
                raise CatalogError(
                    f"Invalid manifest {source}: 'modules' must be a list"
                )
            return entries
        return [data]
    raise CatalogError(f"Invalid manifest {source}: expected mapping or list")


def parse_manifests(data: Any, source: str = "<memory>") -> List[Module]:
    """Convert already-parsed YAML data to modules (declaration order)."""
    modules: List[Module] = []
    for entry in _entries(data, source):
        try:
            manifest = ModuleManifest.model_validate(entry)
        except ValidationError as e:
            raise CatalogError(f"Invalid manifest {source}: {e}") from e
        try:
            modules.append(manifest.to_module())
        except MalformedConditionError as e:
            raise MalformedConditionError(f"{e} ({source})") from e
    return modules


def _load_manifest_file(path: Path) -> List[Module]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (YAMLError, UnicodeDecodeError, OSError) as e:
        raise CatalogError(f"Invalid manifest {path.name}: {e}") from e
    return parse_manifests(data, path.name)


def load_catalog_files(paths: Iterable[str | Path]) -> Tuple[Module, ...]:
    modules: List[Module] = []
    for p in paths:
        modules.extend(_load_manifest_file(Path(p)))
    index_modules(modules)  # duplicate detection
    return tuple(modules)


def load_catalog(catalog_dir: str | Path) -> Tuple[Module, ...]:
    """Load every manifest in `catalog_dir` (thread-safe cache).

    Files are read in sorted name order; modules keep declaration order
    within a file. A missing directory yields an empty catalog.
    """
    root = Path(catalog_dir).resolve()
    with _catalog_lock:
        if root in _catalog_cache:
            return _catalog_cache[root]
        if not root.is_dir():
            logger.warning("catalog directory not found: %s", root)
            _catalog_cache[root] = ()
            return ()
        modules = load_catalog_files(_iter_manifest_files(root))
        logger.info("loaded %d modules from %s", len(modules), root)
        _catalog_cache[root] = modules
        return modules


def clear_catalog_cache(catalog_dir: str | Path | None = None) -> None:
    """Clear cached catalogs.

    If catalog_dir provided, clear only that entry; else clear all.
    """
    with _catalog_lock:
        if catalog_dir is None:
            _catalog_cache.clear()
        else:
            _catalog_cache.pop(Path(catalog_dir).resolve(), None)
