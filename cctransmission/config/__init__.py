"""Configuration package for cctransmission."""

from __future__ import annotations

from cctransmission.config.config import (
    ConfigManager,
    get_client_config,
    get_config,
    get_observability_config,
    init_config,
    reload_config,
    reset_config,
    set_config,
)

__all__ = [
    "ConfigManager",
    "get_client_config",
    "get_config",
    "get_observability_config",
    "init_config",
    "reload_config",
    "reset_config",
    "set_config",
]
