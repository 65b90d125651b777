"""Root logger wiring for the comparison service.

Output goes to stderr and to ``<log_dir>/<log_filename>``, which is truncated
on every start so the file only ever holds the current run. Directory, file
name and level come from :class:`seo_compare.config.Settings` unless the
caller overrides them.
"""
from __future__ import annotations

import logging
from pathlib import Path

from .config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

# Libraries that log every request at DEBUG.
NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def resolve_level(level: str | int | None) -> int:
    """Turn ``"debug"``, ``"10"`` or ``logging.DEBUG`` into a level number.

    Unknown names fall back to INFO.
    """

    if isinstance(level, int):
        return level
    value = (level or "").strip().upper()
    if value.isdigit():
        return int(value)
    return logging.getLevelNamesMapping().get(value, logging.INFO)


def configure_logging(level: str | int | None = None, log_dir: Path | None = None) -> Path:
    settings = get_settings()
    root_level = resolve_level(level if level is not None else settings.log_level)
    directory = Path(log_dir) if log_dir is not None else Path(settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / settings.log_filename

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        level=root_level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path, mode="w", encoding="utf-8"),
        ],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.INFO))

    logging.getLogger(__name__).debug(
        "Root logger at %s writing to %s", logging.getLevelName(root_level), log_path
    )
    return log_path
