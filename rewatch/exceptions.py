# rewatch/exceptions.py

"""
Exception hierarchy for Rewatch
"""


class RewatchError(Exception):
    """Base class for all Rewatch errors"""


class ConfigurationError(RewatchError):
    """Invalid startup configuration (fatal)"""


class WatcherError(RewatchError):
    """The notification mechanism can no longer be trusted (fatal)"""


class TimestampResolutionError(RewatchError):
    """No existing ancestor could be found for a changed path"""

    def __init__(self, path):
        super().__init__(f"Failed to find directory for {path}")
        self.path = path
