"""Console logging for the `activation` logger tree.

Level and format come from `LoggingConfig` (logging.level / logging.format).
The json format emits one object per line for audit log shipping.
"""
from __future__ import annotations

import json
import logging

from .schemas.observability import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_HANDLER_NAME = "activation-console"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": round(record.created, 3),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    cfg: LoggingConfig | None = None, stream=None
) -> logging.Logger:
    """Install (or replace) the console handler on the `activation` logger.

    Idempotent: repeated calls swap the handler instead of stacking.
    """
    cfg = cfg or LoggingConfig()
    logger = logging.getLogger("activation")
    logger.setLevel(_LEVELS[cfg.level])
    for h in list(logger.handlers):
        if h.get_name() == _HANDLER_NAME:
            logger.removeHandler(h)
    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    if cfg.format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
        )
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "JsonLineFormatter"]
