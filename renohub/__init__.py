"""
renohub - Inspiration feed cache and backend repositories
"""
from .app import RenoHub
from .config import Settings, configure_logging, settings

__version__ = "1.0.0"


__all__ = [
    "RenoHub",
    "Settings",
    "configure_logging",
    "settings",
]
