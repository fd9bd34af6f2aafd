"""
Rewatch Core
Command execution and display sinks
"""
from .display import DisplaySink, InteractiveDisplay, TerminalDisplay
from .runner import RunCoordinator, describe_exit

__all__ = [
    'DisplaySink',
    'InteractiveDisplay',
    'TerminalDisplay',
    'RunCoordinator',
    'describe_exit',
]
