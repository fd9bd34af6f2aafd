# rewatch/watchdog/handlers.py

"""
Event handlers: hand raw watchdog events to the asyncio loop and
translate them into timestamped change events
"""
import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirModifiedEvent,
    DirDeletedEvent,
    DirMovedEvent
)

from ..exceptions import TimestampResolutionError
from ..utils.file_utils import get_modification_time, is_directory
from .events import ChangeEvent, EventType, RawEvent
from .patterns import ExclusionFilter
from .watcher import WatchSet

logger = logging.getLogger(__name__)


class ForwardingEventHandler(FileSystemEventHandler):
    """
    Runs on the observer thread. Converts watchdog events and queues them
    on the event loop; no filesystem work happens here.
    """

    def __init__(self, queue: "asyncio.Queue[RawEvent]",
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Initialize forwarding handler

        Args:
            queue: Queue drained by the translator task
            loop: Loop owning the queue (can be attached later)
        """
        self.queue = queue
        self.loop = loop
        self.stats = {
            'events_received': 0,
            'events_forwarded': 0,
            'events_dropped': 0,
        }

    def attach(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    def on_any_event(self, event):
        """Handle any file system event"""
        self.stats['events_received'] += 1

        raw_event = self._convert_event(event)
        if raw_event is None:
            return

        if self.loop is None or self.loop.is_closed():
            self.stats['events_dropped'] += 1
            return

        try:
            self.loop.call_soon_threadsafe(self.queue.put_nowait, raw_event)
            self.stats['events_forwarded'] += 1
        except RuntimeError:
            # Loop closed between the check and the call
            self.stats['events_dropped'] += 1

    def _convert_event(self, event) -> Optional[RawEvent]:
        """Convert watchdog event to our internal format"""
        if isinstance(event, DirModifiedEvent):
            # Mirrors child events that are reported on their own
            return None

        if isinstance(event, (FileCreatedEvent, DirCreatedEvent)):
            event_type = EventType.CREATED
        elif isinstance(event, FileModifiedEvent):
            event_type = EventType.MODIFIED
        elif isinstance(event, (FileDeletedEvent, DirDeletedEvent)):
            event_type = EventType.DELETED
        elif isinstance(event, (FileMovedEvent, DirMovedEvent)):
            event_type = EventType.MOVED
        else:
            # Opened/closed events carry no content change
            return None

        dest_path = getattr(event, 'dest_path', None)

        return RawEvent(
            event_type=event_type,
            src_path=Path(_decode(event.src_path)),
            dest_path=Path(_decode(dest_path)) if dest_path else None,
            is_directory=event.is_directory
        )

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.copy()


def _decode(path) -> str:
    if isinstance(path, bytes):
        return path.decode(errors='surrogateescape')
    return path


def resolve_timestamp(path: Path) -> datetime:
    """
    Resolve the modification time for a changed path.

    A path that no longer exists resolves to its nearest existing ancestor,
    so a deletion is stamped with the time its directory changed.

    Args:
        path: Changed path

    Returns:
        Modification time

    Raises:
        TimestampResolutionError: If no ancestor exists at all
        OSError: For stat failures other than a missing path
    """
    try:
        return get_modification_time(path)
    except (FileNotFoundError, NotADirectoryError):
        parent = path.parent
        if parent == path:
            raise TimestampResolutionError(path)
        return resolve_timestamp(parent)


class EventTranslator:
    """
    Turns raw notifications into change timestamps and grows the
    watch set as new directories appear
    """

    def __init__(self, watch_set: WatchSet,
                 exclusion_filter: Optional[ExclusionFilter] = None):
        """
        Initialize event translator

        Args:
            watch_set: Watch set extended on directory creation
            exclusion_filter: Filter for changes that must not trigger runs
        """
        self.watch_set = watch_set
        self.exclusion_filter = exclusion_filter or watch_set.exclusion_filter

        self.stats = {
            'events_translated': 0,
            'events_excluded': 0,
            'events_failed': 0,
            'directories_added': 0,
            'last_event': None,
        }

    def translate(self, raw_event: RawEvent) -> Optional[ChangeEvent]:
        """
        Translate a raw event

        Args:
            raw_event: Event from the observer

        Returns:
            Change event, or None if the event was excluded or unresolvable

        Raises:
            WatcherError: If extending the watch set hit a handle limit
        """
        if self._is_excluded(raw_event):
            self.stats['events_excluded'] += 1
            logger.debug(f"Ignoring event for excluded path: {raw_event}")
            return None

        if raw_event.event_type in (EventType.DELETED, EventType.MOVED):
            self.watch_set.forget(raw_event.src_path)

        path = raw_event.src_path
        if raw_event.event_type == EventType.MOVED and raw_event.dest_path:
            path = raw_event.dest_path

        try:
            timestamp = resolve_timestamp(path)
            if raw_event.event_type == EventType.MOVED:
                # A rename keeps the file's mtime; the old name resolves to
                # its directory, which the rename just touched
                timestamp = max(timestamp, resolve_timestamp(raw_event.src_path))
        except (TimestampResolutionError, OSError) as e:
            self.stats['events_failed'] += 1
            logger.warning(f"Failed to get event time: {e}")
            return None

        logger.debug(f"{raw_event} at {timestamp}")

        if raw_event.event_type in (EventType.CREATED, EventType.MOVED):
            self._extend_watch_set(path)

        self.stats['events_translated'] += 1
        self.stats['last_event'] = timestamp

        return ChangeEvent(
            event_type=raw_event.event_type,
            path=path,
            timestamp=timestamp,
            is_directory=raw_event.is_directory
        )

    async def process(self, queue: "asyncio.Queue[RawEvent]",
                      on_change: Callable[[datetime], None]):
        """
        Drain raw events forever, forwarding each change timestamp

        Args:
            queue: Queue filled by ForwardingEventHandler
            on_change: Receiver of resolved timestamps
        """
        logger.debug("Starting event translator")

        while True:
            raw_event = await queue.get()
            try:
                change = self.translate(raw_event)
            finally:
                queue.task_done()

            if change is not None:
                on_change(change.timestamp)

    def _is_excluded(self, raw_event: RawEvent) -> bool:
        paths = [raw_event.src_path]
        if raw_event.dest_path:
            paths.append(raw_event.dest_path)
        return all(self.exclusion_filter.matches(p) for p in paths)

    def _extend_watch_set(self, path: Path):
        try:
            directory = is_directory(path)
        except OSError as e:
            logger.warning(f"Couldn't check if {path} is a directory: {e}")
            return

        if directory and not self.watch_set.is_watched(path):
            self.watch_set.watch_recursive(path)
            self.stats['directories_added'] += 1

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.copy()
