"""
Rewatch Utilities
"""
from .config import WatchConfig, load_config
from .logger import setup_logging
from .file_utils import (
    is_directory, list_children, get_modification_time, normalize_path
)

__all__ = [
    'WatchConfig', 'load_config',
    'setup_logging',
    'is_directory', 'list_children', 'get_modification_time', 'normalize_path',
]
