"""Debug output of the tests under the harness.

Tests write their diagnostics to the ``dtntest.debug`` logger. The harness
points it at a stream once, then suspends and resumes it around the sweep.
"""

import logging
from typing import TextIO

DEBUG_LOGGER_NAME = "dtntest.debug"

debug_log = logging.getLogger(DEBUG_LOGGER_NAME)
debug_log.setLevel(logging.DEBUG)
debug_log.propagate = False

_stream_handler: logging.Handler | None = None


def push_stream(stream: TextIO) -> logging.Handler:
    """Send debug output to the given stream, replacing any previous one."""
    global _stream_handler

    if _stream_handler is not None:
        debug_log.removeHandler(_stream_handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    debug_log.addHandler(handler)
    _stream_handler = handler
    return handler


def suspend() -> None:
    debug_log.disabled = True


def resume() -> None:
    debug_log.disabled = False


def is_suspended() -> bool:
    return debug_log.disabled
