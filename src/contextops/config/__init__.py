"""Application configuration helpers."""

from __future__ import annotations

from contextops.common.logging import configure_logging

from .engine import EngineConfig, get_engine_config
from .env import optional_env_var
from .errors import ConfigurationError

__all__ = [
    "ConfigurationError",
    "EngineConfig",
    "configure_logging",
    "get_engine_config",
    "optional_env_var",
]
