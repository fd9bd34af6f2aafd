"""
File utilities for Rewatch
"""
import os
import stat
from pathlib import Path
from typing import List, Union
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def is_directory(path: Union[str, Path]) -> bool:
    """
    Check whether a path is a directory

    Args:
        path: Path to check

    Returns:
        True for a directory, False for anything else including a missing path

    Raises:
        OSError: If stat fails for a reason other than the path not existing
    """
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False

    return stat.S_ISDIR(st.st_mode)


def list_children(path: Union[str, Path]) -> List[Path]:
    """
    List the immediate children of a directory (not recursive)

    Args:
        path: Directory to list

    Returns:
        Child paths sorted by name; empty if the directory no longer exists

    Raises:
        OSError: If the directory cannot be read
    """
    path = Path(path)
    try:
        names = os.listdir(path)
    except FileNotFoundError:
        return []

    return [path / name for name in sorted(names)]


def get_modification_time(path: Union[str, Path]) -> datetime:
    """
    Get the modification time of a path

    Args:
        path: Path to stat

    Returns:
        Modification time as a naive local datetime

    Raises:
        FileNotFoundError: If the path does not exist
        OSError: For any other stat failure
    """
    return datetime.fromtimestamp(os.stat(path).st_mtime)


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize a path for use as a watch target

    Args:
        path: Input path

    Returns:
        Absolute path with user directory expanded
    """
    return Path(os.path.abspath(os.path.expanduser(str(path))))
