"""
Rewatch
Watch a directory tree and re-run a command when it changes
"""
__version__ = "1.0.0"
