"""Debug log file for the completion engine.

Engine modules log through logging.getLogger(__name__) under the
"hqlcomplete" namespace. enable_debug() routes that namespace to
.hqlcomplete/debug.log so index rebuilds and dropped queries can be
inspected without touching the terminal the REPL is drawing on.
"""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "hqlcomplete"


def enable_debug(log_dir: Path | None = None) -> logging.FileHandler:
    """Attach a FileHandler to the hqlcomplete logger writing .hqlcomplete/debug.log."""
    log_path = (log_dir or Path.cwd() / ".hqlcomplete") / "debug.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(log_path))
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger = logging.getLogger(ROOT_LOGGER)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return handler


def disable_debug(handler: logging.FileHandler | None) -> None:
    """Close and remove the debug handler."""
    if handler is None:
        return
    logger = logging.getLogger(ROOT_LOGGER)
    logger.removeHandler(handler)
    handler.close()
    if not logger.handlers:
        logger.setLevel(logging.NOTSET)
