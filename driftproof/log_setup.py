"""Logging configuration for scripts and embedding applications."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5

SENSITIVE_KEYS = {"password", "passwd", "secret", "token", "api_key"}


def configure_logging(level: str | int = "INFO", output_dir: str | Path | None = None) -> None:
    """Console logging, plus rotating app/error logs under ``<output_dir>/logs``."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    if output_dir is None:
        return

    log_dir = Path(output_dir) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)

    for filename, handler_level in (("app.log", logging.NOTSET), ("error.log", logging.ERROR)):
        path = log_dir / filename
        if any(getattr(h, "baseFilename", None) == str(path.resolve()) for h in root.handlers):
            continue
        handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)


def mask_sensitive(data: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of *data* with credential-like values replaced by ``***``."""
    return {k: "***" if k.lower() in SENSITIVE_KEYS else v for k, v in data.items()}
