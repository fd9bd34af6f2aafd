"""
Rewatch Watchdog Module
Change detection and rebuild coordination
"""
from .events import ChangeEvent, EventType, RawEvent
from .patterns import ExclusionFilter
from .watcher import WatchSet
from .handlers import EventTranslator, ForwardingEventHandler, resolve_timestamp
from .debounce import DebounceScheduler
from .monitor import Monitor

__all__ = [
    'ChangeEvent',
    'EventType',
    'RawEvent',
    'ExclusionFilter',
    'WatchSet',
    'EventTranslator',
    'ForwardingEventHandler',
    'resolve_timestamp',
    'DebounceScheduler',
    'Monitor',
]
