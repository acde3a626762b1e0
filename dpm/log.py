"""Logging setup for dpm.

Modules log through `logging.getLogger(__name__)`, so every record lands under
the `dpm` logger. Debug output ("<command>: <what>") is switched on and off
through `set_debug`, which the `debug` command and the CLI `-v` flag call.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "dpm"
LOG_FORMAT = "%(name)s: %(message)s"

_configured = False


def configure(stream=None) -> None:
    """Attach a single stderr handler to the `dpm` logger (idempotent)."""
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger = logging.getLogger(ROOT_LOGGER)
    logger.addHandler(handler)
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.WARNING)
    _configured = True


def set_debug(enabled: bool) -> None:
    logging.getLogger(ROOT_LOGGER).setLevel(logging.DEBUG if enabled else logging.WARNING)


def debug_enabled() -> bool:
    return logging.getLogger(ROOT_LOGGER).isEnabledFor(logging.DEBUG)
