# rewatch/watchdog/patterns.py

"""
Exclusion filtering for watched paths
"""
import re
import logging
from pathlib import Path
from typing import Optional, Pattern, Union

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ExclusionFilter:
    """
    Decide whether a path should be left out of the watch set.

    A single regular expression is compiled once at startup and searched
    anywhere in the full path string, so ``\\.log$`` excludes every log file
    and ``/build/`` excludes everything below any ``build`` directory.
    An empty pattern disables the filter.
    """

    def __init__(self, pattern: Optional[str] = None):
        """
        Initialize exclusion filter

        Args:
            pattern: Regular expression; empty or None excludes nothing

        Raises:
            ConfigurationError: If the pattern is not a valid regular expression
        """
        self.pattern = pattern or ""
        self.compiled_pattern: Optional[Pattern[str]] = None

        if self.pattern:
            try:
                self.compiled_pattern = re.compile(self.pattern)
            except re.error as e:
                raise ConfigurationError(f"Bad regexp: {self.pattern} ({e})") from e
            logger.debug(f"ExclusionFilter compiled pattern: {self.pattern}")

    @property
    def enabled(self) -> bool:
        return self.compiled_pattern is not None

    def matches(self, path: Union[str, Path]) -> bool:
        """
        Check if path is excluded

        Args:
            path: Path to check

        Returns:
            True if the path matches the exclusion pattern
        """
        if self.compiled_pattern is None:
            return False
        return self.compiled_pattern.search(str(path)) is not None

    def __repr__(self):
        return f"ExclusionFilter({self.pattern!r})"
