"""
Storage Layer.

This package handles all data persistence: the INI configuration file and the
JSON state file recording known and installed font packages.
"""

from .config_manager import ConfigManager
from .state_store import StateStore

__all__ = ["ConfigManager", "StateStore"]
