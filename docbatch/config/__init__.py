"""
docbatch configuration package.

Settings are read from init arguments, the environment, a ``.env`` file and
``docbatch.toml``, in that order of precedence.
"""

from . import logging_config
from .logging_config import configure_logging
from .settings import DEFAULT_SAMPLE_PERIOD, ClientSettings

__all__ = [
    "ClientSettings",
    "DEFAULT_SAMPLE_PERIOD",
    "configure_logging",
    "logging_config",
]
