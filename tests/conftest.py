"""Shared pytest setup.

Puts the repository root (activation package, scripts) and src/ (actuator)
on sys.path, and isolates process-wide state between tests: cached config,
catalogs and the default manager, metrics, event listeners and the
ACTIVATION_CONFIG_DIR variable.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
for _p in (ROOT, ROOT / "src"):
    if _p.exists() and str(_p) not in sys.path:
        sys.path.insert(0, str(_p))


def _clear_caches() -> None:
    from activation.catalog import clear_catalog_cache
    from activation.config import clear_config_cache
    from activation.modules import clear_activation_manager

    clear_config_cache()
    clear_catalog_cache()
    clear_activation_manager()


def _reset_activation_logger() -> None:
    logger = logging.getLogger("activation")
    for h in list(logger.handlers):
        if h.get_name() == "activation-console":
            logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _isolate_activation_state():  # noqa: D401
    from activation import metrics
    from activation.events import reset_listeners_for_tests

    prev_dir = os.environ.get("ACTIVATION_CONFIG_DIR")
    _clear_caches()
    metrics.reset_for_tests()
    reset_listeners_for_tests()
    try:
        yield
    finally:
        _clear_caches()
        reset_listeners_for_tests()
        _reset_activation_logger()
        if prev_dir is None:
            os.environ.pop("ACTIVATION_CONFIG_DIR", None)
        else:
            os.environ["ACTIVATION_CONFIG_DIR"] = prev_dir


@pytest.fixture
def sample_config_dir() -> Path:
    return ROOT / "configs"
