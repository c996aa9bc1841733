"""Debug tap for raw control-socket traffic."""

from __future__ import annotations

import logging
from typing import Callable, Union

WIRE_LOGGER_NAME = "cctransmission.client.wire"

OUTBOUND = ">>>"
INBOUND = "<<<"

DebugTap = Callable[[str, bytes], None]
DebugOption = Union[bool, DebugTap, None]

wire_logger = logging.getLogger(WIRE_LOGGER_NAME)


def log_tap(direction: str, payload: bytes) -> None:
    """Log one raw payload at DEBUG."""
    wire_logger.debug(
        "%s %s", direction, payload.decode("utf-8", errors="backslashreplace")
    )


def resolve_tap(debug: DebugOption) -> DebugTap | None:
    """Turn the ``debug`` option into a tap callable (or None)."""
    if debug is None or debug is False:
        return None
    if debug is True:
        return log_tap
    if callable(debug):
        return debug
    msg = f"debug must be a bool or a callable, not {type(debug).__name__}"
    raise TypeError(msg)
