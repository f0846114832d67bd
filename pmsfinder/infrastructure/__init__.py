"""
Infrastructure and utilities module.

Handles path resolution, settings loading and logging setup.
"""

from .paths import Paths, init_paths
from .settings import Settings, load_settings
from .logging_setup import setup_logging

__all__ = [
    'Paths',
    'init_paths',
    'Settings',
    'load_settings',
    'setup_logging',
]
