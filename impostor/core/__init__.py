"""
Impostor - Core Package
=======================

Framework essentials: config, constants, colors, and logging.
"""

from impostor.core.config import config
from impostor.core.logger import log

__all__ = ["config", "log"]
